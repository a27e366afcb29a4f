"""Step graph: two spines (single, multi) joined at select-mode.

Forward moves are chosen by each screen. Backward moves are a fixed table
keyed by mode and step, so "back" always lands on the canonical predecessor
no matter how the operator got here.
"""

from onboarding.state import (
    ContentPhase,
    CreationType,
    StepId,
    WizardMode,
    WizardState,
    apply_updates,
)

SINGLE_SPINE: tuple[StepId, ...] = (
    StepId.SELECT_MODE,
    StepId.SELECT_CREATION_TYPE,
    StepId.SELECT_TEMPLATE,
    StepId.DEFINE_NAME,
    StepId.CREATION_CONFIRM,
    StepId.EDIT_RULES,
    StepId.EDIT_STEPS,
    StepId.EDIT_FAQ,
    StepId.FINAL_CONFIRMATION,
)

MULTI_SPINE: tuple[StepId, ...] = (
    StepId.SELECT_MODE,
    StepId.SELECT_TEMPLATES,
    StepId.REVIEW_AGENTS,
    StepId.DEFINE_MULTI_NAMES,
    StepId.BATCH_CREATION,
    StepId.CREATION_CONFIRM,
    StepId.EDIT_AGENTS,
    StepId.EDIT_MULTI_AGENT,
    StepId.FINAL_CONFIRMATION,
)

TERMINAL_STEPS = frozenset({StepId.FINAL_CONFIRMATION})

_PREVIOUS_PHASE = {
    ContentPhase.STEPS: ContentPhase.RULES,
    ContentPhase.FAQ: ContentPhase.STEPS,
}


def previous_step(
    mode: WizardMode | None,
    step: StepId,
    creation_type: CreationType | None = None,
) -> StepId:
    """Canonical predecessor of step. Unknown pairs go back to select-mode."""
    match (mode, step):
        case (WizardMode.SINGLE, StepId.SELECT_CREATION_TYPE):
            return StepId.SELECT_MODE
        case (WizardMode.SINGLE, StepId.SELECT_TEMPLATE):
            return StepId.SELECT_CREATION_TYPE
        case (WizardMode.SINGLE, StepId.DEFINE_NAME):
            if creation_type == CreationType.TEMPLATE:
                return StepId.SELECT_TEMPLATE
            return StepId.SELECT_CREATION_TYPE
        case (WizardMode.SINGLE, StepId.CREATION_CONFIRM):
            return StepId.DEFINE_NAME
        case (WizardMode.SINGLE, StepId.EDIT_RULES):
            return StepId.CREATION_CONFIRM
        case (WizardMode.SINGLE, StepId.EDIT_STEPS):
            return StepId.EDIT_RULES
        case (WizardMode.SINGLE, StepId.EDIT_FAQ):
            return StepId.EDIT_STEPS
        case (WizardMode.SINGLE, StepId.FINAL_CONFIRMATION):
            return StepId.EDIT_FAQ
        case (WizardMode.MULTI, StepId.SELECT_TEMPLATES):
            return StepId.SELECT_MODE
        case (WizardMode.MULTI, StepId.REVIEW_AGENTS):
            return StepId.SELECT_TEMPLATES
        case (WizardMode.MULTI, StepId.DEFINE_MULTI_NAMES):
            return StepId.REVIEW_AGENTS
        case (WizardMode.MULTI, StepId.BATCH_CREATION):
            return StepId.DEFINE_MULTI_NAMES
        case (WizardMode.MULTI, StepId.CREATION_CONFIRM):
            return StepId.BATCH_CREATION
        case (WizardMode.MULTI, StepId.EDIT_AGENTS):
            return StepId.CREATION_CONFIRM
        case (WizardMode.MULTI, StepId.EDIT_MULTI_AGENT):
            return StepId.BATCH_CREATION
        case (WizardMode.MULTI, StepId.FINAL_CONFIRMATION):
            return StepId.EDIT_MULTI_AGENT
        case _:
            return StepId.SELECT_MODE


def back(state: WizardState) -> WizardState:
    """State after the operator presses back.

    Inside edit-multi-agent the rules/steps/FAQ phases unwind first; only
    from the rules phase does back leave the step. Once the batch has created
    agents, batch-creation is as far back as the multi flow goes, so the batch
    never runs twice.
    """
    if (
        state.mode == WizardMode.MULTI
        and state.current_step == StepId.BATCH_CREATION
        and state.multi.batch_provisioned
    ):
        return state
    if state.mode == WizardMode.MULTI and state.current_step == StepId.EDIT_MULTI_AGENT:
        earlier = _PREVIOUS_PHASE.get(state.multi.content_phase)
        if earlier is not None:
            return apply_updates(state, {"multi": {"content_phase": earlier}})
    target = previous_step(state.mode, state.current_step, state.single.creation_type)
    return apply_updates(state, {"current_step": target})


def is_terminal(step: StepId) -> bool:
    return step in TERMINAL_STEPS
