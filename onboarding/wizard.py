"""Wizard controller and the interactive run loop."""

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from core.api import AgentRegistry, ApiClient, ContentStore, MediaStore, ReferenceData
from core.settings import get_setting
from editor.registry import EmbedRegistry, create_registry
from onboarding import graph
from onboarding.state import WizardState, apply_updates
from onboarding.templates import AgentTemplate, load_templates

logger = logging.getLogger(__name__)


class Nav(StrEnum):
    BACK = "back"
    CLOSE = "close"
    STAY = "stay"


# What a screen hands back: partial updates, a whole new state, or a navigation signal
Outcome = Mapping[str, Any] | WizardState | Nav


class WizardController:
    """Owns WizardState for one wizard session."""

    def __init__(self, state: WizardState | None = None) -> None:
        self._state = state or WizardState()
        self.closed = False

    @property
    def state(self) -> WizardState:
        return self._state

    def next(self, updates: Mapping[str, Any] | WizardState) -> WizardState:
        """Merge a screen's updates. final-confirmation accepts no forward move."""
        new = updates if isinstance(updates, WizardState) else apply_updates(self._state, updates)
        if graph.is_terminal(self._state.current_step) and new.current_step != self._state.current_step:
            raise RuntimeError("final-confirmation has no next step; close the wizard instead")
        if new.current_step != self._state.current_step:
            logger.debug("Wizard %s -> %s", self._state.current_step, new.current_step)
        self._state = new
        return new

    def back(self) -> WizardState:
        self._state = graph.back(self._state)
        logger.debug("Wizard back to %s", self._state.current_step)
        return self._state

    def close(self) -> None:
        self.closed = True

    def dispatch(self, outcome: Outcome) -> None:
        match outcome:
            case Nav.BACK:
                self.back()
            case Nav.CLOSE:
                self.close()
            case Nav.STAY:
                pass
            case _:
                self.next(outcome)


@dataclass
class WizardContext:
    """Collaborators shared by every screen of one session."""

    agents: AgentRegistry
    content: ContentStore
    reference: ReferenceData
    media: MediaStore
    embeds: EmbedRegistry
    templates: list[AgentTemplate]
    settings: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_client(
        cls, client: ApiClient, settings: dict[str, Any], templates_dir: Path | None = None
    ) -> "WizardContext":
        agents = AgentRegistry(client)
        return cls(
            agents=agents,
            content=ContentStore(client),
            reference=ReferenceData(client, agents),
            media=MediaStore(client),
            embeds=create_registry(),
            templates=load_templates(templates_dir),
            settings=settings,
        )

    def setting(self, path: str, default: Any = None) -> Any:
        return get_setting(self.settings, path, default)


Screen = Callable[[WizardContext, WizardState], Awaitable[Outcome]]


@dataclass
class WizardResult:
    state: WizardState
    completed: bool


async def run_wizard(
    ctx: WizardContext,
    screen_for: Callable[[WizardState], Screen],
    state: WizardState | None = None,
) -> WizardResult:
    """Render screens until the operator closes the wizard.

    Returns completed=True when it was closed from final-confirmation.
    """
    controller = WizardController(state)
    while not controller.closed:
        current = controller.state
        screen = screen_for(current)
        outcome = await screen(ctx, current)
        if outcome == Nav.CLOSE:
            return WizardResult(
                state=current, completed=graph.is_terminal(current.current_step)
            )
        controller.dispatch(outcome)
    return WizardResult(state=controller.state, completed=False)

