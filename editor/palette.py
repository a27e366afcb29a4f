"""Command palette: pick a decision kind, then the item it acts on.

Two pages. Commands lists the eight kinds; Selection lists candidates fetched
from the reference-data providers for the chosen kind. Stage transfer takes
two picks on the Selection page (funnel, then one of its stages). Every entry
into Selection fetches once; nothing survives a close.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from core.api.client import ApiError
from core.api.models import Funnel, ReferenceItem
from editor.tokens import ACTION_VERBS, DecisionKind, DecisionToken

logger = logging.getLogger(__name__)


class PalettePage(StrEnum):
    COMMANDS = "commands"
    SELECTION = "selection"
    CLOSED = "closed"


class Key(StrEnum):
    DOWN = "ArrowDown"
    UP = "ArrowUp"
    ENTER = "Enter"
    ESCAPE = "Escape"


@dataclass(frozen=True)
class Command:
    kind: DecisionKind
    label: str


COMMANDS: tuple[Command, ...] = tuple(Command(kind, ACTION_VERBS[kind]) for kind in DecisionKind)


@dataclass(frozen=True)
class InsertAtTrigger:
    """Delete the trigger character before index and insert the token there."""

    editor_key: str
    index: int


@dataclass(frozen=True)
class ReplaceEmbed:
    """Swap the embed at offset for the new token."""

    editor_key: str
    offset: int


Target = InsertAtTrigger | ReplaceEmbed


@dataclass(frozen=True)
class PaletteCommit:
    token: DecisionToken
    target: Target


class CandidateSource(Protocol):
    """What the palette needs from the reference-data providers."""

    async def tags(self) -> list[ReferenceItem]: ...
    async def agents_for_transfer(self, exclude_id: int | None = None) -> list[ReferenceItem]: ...
    async def users(self) -> list[ReferenceItem]: ...
    async def sources(self) -> list[ReferenceItem]: ...
    async def funnels(self) -> list[Funnel]: ...
    async def notifications(self) -> list[ReferenceItem]: ...
    async def products(self) -> list[ReferenceItem]: ...


CommitHandler = Callable[[PaletteCommit], Awaitable[object] | object]


class CommandPalette:
    def __init__(
        self,
        source: CandidateSource,
        current_agent_id: int | None = None,
        on_commit: CommitHandler | None = None,
    ) -> None:
        self._source = source
        self.current_agent_id = current_agent_id
        self._on_commit = on_commit
        self._reset()

    def _reset(self) -> None:
        self.page = PalettePage.CLOSED
        self.kind: DecisionKind | None = None
        self.target: Target | None = None
        self.search = ""
        self.highlighted = 0
        self.items: list[ReferenceItem] = []
        self.funnels: list[Funnel] = []
        self.funnel: Funnel | None = None
        self.error: str | None = None

    @property
    def is_open(self) -> bool:
        return self.page != PalettePage.CLOSED

    async def open(
        self, target: Target, initial_kind: DecisionKind | None = None
    ) -> PaletteCommit | None:
        """Open on Commands, or straight on Selection when editing an existing token."""
        self._reset()
        self.target = target
        self.page = PalettePage.COMMANDS
        if initial_kind is not None:
            return await self.choose_command(initial_kind)
        return None

    def close(self) -> None:
        self._reset()

    def set_search(self, term: str) -> None:
        self.search = term
        self.highlighted = 0

    def visible(self) -> list[Command] | list[ReferenceItem]:
        """Current page's entries matching the search, case-insensitively."""
        needle = self.search.lower()
        if self.page == PalettePage.COMMANDS:
            return [c for c in COMMANDS if needle in c.label.lower()]
        if self.page == PalettePage.SELECTION:
            return [i for i in self.items if needle in i.name.lower()]
        return []

    @property
    def choosing_funnel(self) -> bool:
        return self.kind == DecisionKind.TRANSFER_STAGE and self.funnel is None

    async def press(self, key: str) -> PaletteCommit | None:
        if not self.is_open:
            return None
        entries = self.visible()
        match key:
            case Key.DOWN:
                if entries:
                    self.highlighted = (self.highlighted + 1) % len(entries)
            case Key.UP:
                if entries:
                    self.highlighted = (self.highlighted - 1) % len(entries)
            case Key.ENTER:
                if not entries:
                    return None
                entry = entries[min(self.highlighted, len(entries) - 1)]
                if isinstance(entry, Command):
                    return await self.choose_command(entry.kind)
                return await self.choose_item(entry)
            case Key.ESCAPE:
                self.back()
            case _:
                logger.debug("Ignoring palette key %r", key)
        return None

    async def choose_command(self, kind: DecisionKind) -> PaletteCommit | None:
        if self.page != PalettePage.COMMANDS:
            raise RuntimeError(f"Cannot choose a command on the {self.page} page")
        self.kind = DecisionKind(kind)
        if self.kind == DecisionKind.STOP_AGENT:
            return await self._commit(DecisionToken(kind=self.kind, target_id=None))
        self.page = PalettePage.SELECTION
        self.set_search("")
        await self._load()
        return None

    async def choose_item(self, item: ReferenceItem) -> PaletteCommit | None:
        """Commit the item, except a funnel, which opens its stage list."""
        if self.page != PalettePage.SELECTION or self.kind is None:
            raise RuntimeError("No selection in progress")
        if self.choosing_funnel:
            self.funnel = next((f for f in self.funnels if f.id == item.id), None)
            self.items = list(self.funnel.stages) if self.funnel else []
            self.set_search("")
            return None
        token = DecisionToken(kind=self.kind, target_id=item.id, label=item.name)
        return await self._commit(token)

    def back(self) -> None:
        """One level up: stage list to funnel list, Selection to Commands, Commands closes."""
        if self.page == PalettePage.SELECTION:
            if self.kind == DecisionKind.TRANSFER_STAGE and self.funnel is not None:
                self.funnel = None
                self.items = _funnel_items(self.funnels)
            else:
                self.page = PalettePage.COMMANDS
                self.kind = None
                self.items = []
                self.funnels = []
                self.error = None
            self.set_search("")
        elif self.page == PalettePage.COMMANDS:
            self.close()

    async def _load(self) -> None:
        self.items = []
        self.funnels = []
        self.funnel = None
        self.error = None
        try:
            match self.kind:
                case DecisionKind.ADD_TAG:
                    self.items = await self._source.tags()
                case DecisionKind.TRANSFER_AGENT:
                    self.items = await self._source.agents_for_transfer(self.current_agent_id)
                case DecisionKind.TRANSFER_USER:
                    self.items = await self._source.users()
                case DecisionKind.ASSIGN_SOURCE:
                    self.items = await self._source.sources()
                case DecisionKind.TRANSFER_STAGE:
                    self.funnels = await self._source.funnels()
                    self.items = _funnel_items(self.funnels)
                case DecisionKind.NOTIFY:
                    self.items = await self._source.notifications()
                case DecisionKind.ASSIGN_PRODUCT:
                    self.items = await self._source.products()
        except ApiError as e:
            logger.warning("Could not load %s candidates: %s", self.kind, e)
            self.error = str(e)

    async def _commit(self, token: DecisionToken) -> PaletteCommit:
        if self.target is None:
            raise RuntimeError("Palette has no insertion target")
        commit = PaletteCommit(token=token, target=self.target)
        self.close()
        if self._on_commit is not None:
            result = self._on_commit(commit)
            if inspect.isawaitable(result):
                await result
        return commit


def _funnel_items(funnels: list[Funnel]) -> list[ReferenceItem]:
    return [ReferenceItem(id=f.id, name=f.name) for f in funnels]
