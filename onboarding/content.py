"""Per-agent content phase: rules, then script steps, then FAQ.

Each phase is saved before the wizard moves on. A failed save leaves the
state untouched (the draft included) so the operator can retry.
"""

import logging
from collections.abc import Sequence

from core.api.client import ApiError
from core.api.content import ContentStore
from core.api.models import AgentRecord, FaqPayload, ScriptStepPayload
from editor.registry import EmbedRegistry
from editor.richtext import RichText
from onboarding.state import (
    PRINCIPAL_KEY,
    AgentContent,
    ContentPhase,
    CreationType,
    FaqItem,
    ScriptStep,
    StepId,
    WizardState,
    apply_updates,
)
from onboarding.templates import AgentTemplate, principal_template

logger = logging.getLogger(__name__)

_NEXT_PHASE = {ContentPhase.RULES: ContentPhase.STEPS, ContentPhase.STEPS: ContentPhase.FAQ}

_SINGLE_PHASES = {
    StepId.EDIT_RULES: (ContentPhase.RULES, StepId.EDIT_STEPS),
    StepId.EDIT_STEPS: (ContentPhase.STEPS, StepId.EDIT_FAQ),
    StepId.EDIT_FAQ: (ContentPhase.FAQ, StepId.FINAL_CONFIRMATION),
}


class ContentSaveError(Exception):
    """A content phase could not be persisted."""

    def __init__(self, message: str, phase: ContentPhase | None = None) -> None:
        super().__init__(message)
        self.phase = phase


def content_from_template(
    template: AgentTemplate | None, registry: EmbedRegistry
) -> AgentContent:
    if template is None:
        return AgentContent()
    return AgentContent(
        rules=RichText.from_html(template.rules_html, registry),
        steps=tuple(
            ScriptStep(order=i, name=s.name, body=RichText.from_html(s.body_html, registry))
            for i, s in enumerate(sorted(template.steps, key=lambda s: s.order), 1)
        ),
        faq=tuple(
            FaqItem(order=i, question=f.question, answer=RichText.from_html(f.answer_html, registry))
            for i, f in enumerate(sorted(template.faq, key=lambda f: f.order), 1)
        ),
    )


def template_for(
    agent: AgentRecord, templates: Sequence[AgentTemplate]
) -> AgentTemplate | None:
    """Template an agent was created from; the principal gets the level-1 template."""
    if agent.template_id == PRINCIPAL_KEY:
        return principal_template(list(templates))
    return next((t for t in templates if t.id == agent.template_id), None)


async def persist(
    store: ContentStore,
    registry: EmbedRegistry,
    agent_id: int,
    content: AgentContent,
    phase: ContentPhase,
) -> None:
    """Save one phase of content. Raises ContentSaveError."""
    try:
        match phase:
            case ContentPhase.RULES:
                await store.save_rules(agent_id, content.rules.to_html(registry))
            case ContentPhase.STEPS:
                await store.save_steps(
                    agent_id,
                    [
                        ScriptStepPayload(order=s.order, name=s.name, body_html=s.body.to_html(registry))
                        for s in content.steps
                    ],
                )
            case ContentPhase.FAQ:
                await store.save_faq(
                    agent_id,
                    [
                        FaqPayload(order=f.order, question=f.question, answer_html=f.answer.to_html(registry))
                        for f in content.faq
                    ],
                )
    except ApiError as e:
        raise ContentSaveError(f"Erro ao salvar {phase}: {e}", phase) from e
    logger.info("Saved %s for agent %s", phase, agent_id)


def start_multi_agent(
    state: WizardState, templates: Sequence[AgentTemplate], registry: EmbedRegistry
) -> WizardState:
    """Load the draft for the agent at editing_index, unless one is in progress.

    An agent whose content was already saved keeps the current phase, so
    coming back from final-confirmation lands on its FAQ.
    """
    multi = state.multi
    agent = multi.editing_agent
    if agent is None or multi.draft is not None:
        return state
    draft = multi.edited_contents.get(agent.id) if agent.id else None
    if draft is not None:
        return apply_updates(state, {"multi": {"draft": draft}})
    draft = content_from_template(template_for(agent, templates), registry)
    return apply_updates(state, {"multi": {"draft": draft, "content_phase": ContentPhase.RULES}})


async def advance_multi(
    state: WizardState, store: ContentStore, registry: EmbedRegistry
) -> WizardState:
    """Save the current phase of the agent being edited and move on.

    FAQ is the last phase: it files the draft under the agent's id and moves
    to the next agent, or to final-confirmation after the last one.
    """
    multi = state.multi
    agent = multi.editing_agent
    if agent is None or not agent.id:
        raise ContentSaveError("ID do agente não encontrado. Não é possível salvar.")
    draft = multi.draft or AgentContent()
    phase = multi.content_phase

    await persist(store, registry, agent.id, draft, phase)

    following = _NEXT_PHASE.get(phase)
    if following is not None:
        return apply_updates(state, {"multi": {"content_phase": following, "draft": draft}})

    edited = {**multi.edited_contents, agent.id: draft}
    if multi.editing_index >= len(multi.created_agents) - 1:
        return apply_updates(
            state,
            {
                "current_step": StepId.FINAL_CONFIRMATION,
                "multi": {"edited_contents": edited, "draft": None},
            },
        )
    return apply_updates(
        state,
        {
            "multi": {
                "edited_contents": edited,
                "editing_index": multi.editing_index + 1,
                "content_phase": ContentPhase.RULES,
                "draft": None,
            }
        },
    )


def seed_single(state: WizardState, registry: EmbedRegistry) -> WizardState:
    """Template content for a single agent, if it was created from one and nothing was edited yet."""
    single = state.single
    if single.content is not None:
        return state
    template = single.template if single.creation_type == CreationType.TEMPLATE else None
    return apply_updates(state, {"single": {"content": content_from_template(template, registry)}})


async def advance_single(
    state: WizardState, store: ContentStore, registry: EmbedRegistry
) -> WizardState:
    """Save the phase owned by the current edit-* step and go to the next step."""
    if state.current_step not in _SINGLE_PHASES:
        raise ValueError(f"{state.current_step} is not a content step")
    agent = state.single.created_agent
    if agent is None or not agent.id:
        raise ContentSaveError("ID do agente não encontrado. Não é possível salvar.")
    phase, following = _SINGLE_PHASES[state.current_step]
    await persist(store, registry, agent.id, state.single.content or AgentContent(), phase)
    return apply_updates(state, {"current_step": following})
