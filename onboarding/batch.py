"""Batch creation of a principal agent plus N specialists.

Items are created one at a time: each name is made unique against the
existing agents and everything created earlier in the same run, so the loop
cannot be parallelized. A failed item is recorded and the batch moves on.
There is no rollback; agents created before the operator abandons a run
stay on the backend.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from core.api.agents import AgentRegistry, latest_by_name
from core.api.client import ApiError
from core.api.models import AgentRecord
from onboarding.naming import desired_name, unique_name
from onboarding.state import PRINCIPAL_KEY
from onboarding.templates import AgentTemplate

logger = logging.getLogger(__name__)

DEFAULT_PRINCIPAL_NAME = "Recepção - Agente Principal"

Sleep = Callable[[float], Awaitable[None]]


class CreationState(StrEnum):
    PENDING = "pending"
    CREATING = "creating"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class AgentCreationStatus:
    """Progress of one agent in a batch. Updated in place as the run advances."""

    template_id: str
    desired_name: str
    resolved_name: str | None = None
    state: CreationState = CreationState.PENDING
    agent_id: int | None = None
    error: str | None = None

    @property
    def done(self) -> bool:
        return self.state in (CreationState.SUCCESS, CreationState.ERROR)

    @property
    def succeeded(self) -> bool:
        return self.state == CreationState.SUCCESS


@dataclass
class BatchResult:
    principal: AgentCreationStatus
    specialists: list[AgentCreationStatus] = field(default_factory=list)

    @property
    def statuses(self) -> list[AgentCreationStatus]:
        return [self.principal, *self.specialists]

    @property
    def success_count(self) -> int:
        return sum(1 for s in self.statuses if s.state == CreationState.SUCCESS)

    @property
    def error_count(self) -> int:
        return sum(1 for s in self.statuses if s.state == CreationState.ERROR)

    @property
    def can_continue(self) -> bool:
        return self.success_count > 0


class IdentifierResolutionError(Exception):
    """The final lookup found none of the agents the batch created."""


ProgressHandler = Callable[[AgentCreationStatus], None]


class BatchCreationCoordinator:
    def __init__(
        self,
        registry: AgentRegistry,
        *,
        principal_name: str | None = None,
        id_resolution_delay: float = 1.0,
        sleep: Sleep = asyncio.sleep,
        on_progress: ProgressHandler | None = None,
    ) -> None:
        self._registry = registry
        self._principal_name = (principal_name or "").strip() or DEFAULT_PRINCIPAL_NAME
        self._delay = id_resolution_delay
        self._sleep = sleep
        self._on_progress = on_progress

    def _report(self, status: AgentCreationStatus) -> None:
        if self._on_progress is not None:
            self._on_progress(status)

    async def run(
        self,
        specialists: Sequence[AgentTemplate],
        overrides: Mapping[str, str] | None = None,
    ) -> BatchResult:
        """Create the principal, then each specialist in order. Never raises for a single item."""
        overrides = overrides or {}
        principal_name = overrides.get(PRINCIPAL_KEY, "").strip() or self._principal_name
        result = BatchResult(
            principal=AgentCreationStatus(PRINCIPAL_KEY, principal_name),
            specialists=[
                AgentCreationStatus(t.id, desired_name(t, overrides)) for t in specialists
            ],
        )
        for status in result.statuses:
            self._report(status)

        try:
            existing = await self._registry.list_agents()
        except ApiError as e:
            logger.warning("Could not list existing agents, names are unchecked: %s", e)
            existing = []
        taken = [a.name for a in existing]

        await self._create_principal(result.principal, existing, taken)
        for status in result.specialists:
            await self._create_specialist(status, taken)

        logger.info(
            "Batch finished: %d created, %d failed", result.success_count, result.error_count
        )
        return result

    async def _create_principal(
        self,
        status: AgentCreationStatus,
        existing: list[AgentRecord],
        taken: list[str],
    ) -> None:
        status.state = CreationState.CREATING
        self._report(status)

        current = next((a for a in existing if a.is_principal), None)
        if current is not None:
            try:
                await self._registry.demote_principal(current)
            except ApiError as e:
                logger.warning("Could not demote principal %s: %s", current.id, e)

        status.resolved_name = status.desired_name
        await self._create(status, taken, is_principal=True)

    async def _create_specialist(self, status: AgentCreationStatus, taken: list[str]) -> None:
        status.state = CreationState.CREATING
        self._report(status)
        status.resolved_name = unique_name(status.desired_name, taken)
        await self._create(status, taken, is_principal=False)

    async def _create(
        self, status: AgentCreationStatus, taken: list[str], *, is_principal: bool
    ) -> None:
        name = status.resolved_name or status.desired_name
        try:
            agent_id = await self._registry.create_agent(
                name,
                active=True,
                is_principal=is_principal,
                trigger_enabled=False,
                trigger_text="",
            )
        except ApiError as e:
            self._fail(status, f"Erro ao criar agente {name}: {e}")
            return

        # Created server-side even if its id is still unknown
        taken.append(name)

        if agent_id is None:
            agent_id = await self._resolve_id(name)
        if agent_id is None:
            self._fail(status, "ID do agente não retornado")
            return

        status.agent_id = agent_id
        status.state = CreationState.SUCCESS
        status.error = None
        logger.info("Created agent %r (id=%s)", name, agent_id)
        self._report(status)

    async def _resolve_id(self, name: str) -> int | None:
        """One delayed refetch; the newest agent with this name wins."""
        await self._sleep(self._delay)
        try:
            agents = await self._registry.list_agents()
        except ApiError as e:
            logger.warning("Id lookup for %r failed: %s", name, e)
            return None
        found = latest_by_name(agents, name)
        return found.id if found else None

    def _fail(self, status: AgentCreationStatus, message: str) -> None:
        status.state = CreationState.ERROR
        status.error = message
        logger.warning("Batch item %s failed: %s", status.template_id, message)
        self._report(status)

    async def resolve_created_agents(self, result: BatchResult) -> list[AgentRecord]:
        """Authoritative records for every successful item, principal first.

        Ids come from a fresh listing matched by name, not from the per-item
        lookups made during the run. Raises IdentifierResolutionError when
        none can be found and ApiError when the listing fails.
        """
        agents = await self._registry.list_agents()
        resolved: list[AgentRecord] = []
        for status in result.statuses:
            if status.state != CreationState.SUCCESS:
                continue
            name = status.resolved_name or status.desired_name
            found = latest_by_name(agents, name)
            if found is None:
                logger.warning("Created agent %r not found in listing", name)
                continue
            status.agent_id = found.id
            resolved.append(found.model_copy(update={"template_id": status.template_id}))
        if not resolved:
            raise IdentifierResolutionError("Nenhum agente encontrado na API")
        return resolved
