"""Wizard state. Every transition builds a new WizardState; nothing is mutated in place."""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from core.api.models import AgentRecord
from editor.richtext import RichText
from onboarding.templates import AgentTemplate

if TYPE_CHECKING:
    from onboarding.batch import AgentCreationStatus


class WizardMode(StrEnum):
    SINGLE = "single"
    MULTI = "multi"


class CreationType(StrEnum):
    SCRATCH = "scratch"
    TEMPLATE = "template"


class ContentPhase(StrEnum):
    RULES = "rules"
    STEPS = "steps"
    FAQ = "faq"


class StepId(StrEnum):
    SELECT_MODE = "select-mode"
    # Single-agent spine
    SELECT_CREATION_TYPE = "select-creation-type"
    SELECT_TEMPLATE = "select-template"
    DEFINE_NAME = "define-name"
    CREATION_CONFIRM = "creation-confirm"
    EDIT_RULES = "edit-rules"
    EDIT_STEPS = "edit-steps"
    EDIT_FAQ = "edit-faq"
    # Multi-agent spine
    SELECT_TEMPLATES = "select-templates"
    REVIEW_AGENTS = "review-agents"
    DEFINE_MULTI_NAMES = "define-multi-names"
    BATCH_CREATION = "batch-creation"
    EDIT_AGENTS = "edit-agents"
    EDIT_MULTI_AGENT = "edit-multi-agent"
    # Both
    FINAL_CONFIRMATION = "final-confirmation"


PRINCIPAL_KEY = "principal"


@dataclass(frozen=True)
class ScriptStep:
    order: int
    name: str
    body: RichText = field(default_factory=RichText)


@dataclass(frozen=True)
class FaqItem:
    order: int
    question: str | None = None
    answer: RichText = field(default_factory=RichText)


@dataclass(frozen=True)
class AgentContent:
    """Rules, script steps and FAQ of one agent."""

    rules: RichText = field(default_factory=RichText)
    steps: tuple[ScriptStep, ...] = ()
    faq: tuple[FaqItem, ...] = ()


@dataclass(frozen=True)
class SingleAgentState:
    creation_type: CreationType | None = None
    template: AgentTemplate | None = None
    name: str = ""
    is_principal: bool = False
    created_agent: AgentRecord | None = None
    content: AgentContent | None = None


@dataclass(frozen=True)
class MultiAgentState:
    templates: tuple[AgentTemplate, ...] = ()
    # template id -> custom name; PRINCIPAL_KEY holds the principal's name
    name_overrides: Mapping[str, str] = field(default_factory=dict)
    created_agents: tuple[AgentRecord, ...] = ()
    # Per-item outcome of the last batch run
    batch_statuses: tuple["AgentCreationStatus", ...] = ()
    editing_index: int = 0
    content_phase: ContentPhase = ContentPhase.RULES
    # Content of the agent being edited, not yet fully persisted
    draft: AgentContent | None = None
    edited_contents: Mapping[int, AgentContent] = field(default_factory=dict)

    @property
    def batch_provisioned(self) -> bool:
        """True once the batch has created at least one agent on the backend."""
        return any(s.succeeded for s in self.batch_statuses)

    @property
    def editing_agent(self) -> AgentRecord | None:
        if 0 <= self.editing_index < len(self.created_agents):
            return self.created_agents[self.editing_index]
        return None


@dataclass(frozen=True)
class WizardState:
    mode: WizardMode | None = None
    current_step: StepId = StepId.SELECT_MODE
    single: SingleAgentState = field(default_factory=SingleAgentState)
    multi: MultiAgentState = field(default_factory=MultiAgentState)


def apply_updates(state: WizardState, updates: Mapping[str, Any]) -> WizardState:
    """Shallow-merge updates onto state.

    Top-level keys replace fields of WizardState; "single" and "multi" are
    themselves mappings merged onto the sub-states, so fields not mentioned
    are kept.
    """
    top = {k: v for k, v in updates.items() if k not in ("single", "multi")}
    single = state.single
    multi = state.multi
    if updates.get("single"):
        single = replace(single, **updates["single"])
    if updates.get("multi"):
        multi = replace(multi, **updates["multi"])
    return replace(state, **top, single=single, multi=multi)
