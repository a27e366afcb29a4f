"""Shared fakes for the wizard tests."""

import pytest

from core.api.client import ApiError
from core.api.models import AgentRecord, Funnel, ReferenceItem
from editor.registry import EmbedRegistry, create_registry


class FakeRegistry:
    """In-memory stand-in for core.api.agents.AgentRegistry."""

    def __init__(
        self,
        agents: list[AgentRecord] | None = None,
        *,
        return_ids: bool = True,
        fail_names: tuple[str, ...] = (),
        fail_listing: bool = False,
    ) -> None:
        self.agents = list(agents or [])
        self.return_ids = return_ids
        self.fail_names = set(fail_names)
        self.fail_listing = fail_listing
        self.created: list[dict] = []
        self.demoted: list[AgentRecord] = []
        self.list_calls = 0
        self._next_id = max((a.id or 0 for a in self.agents), default=0) + 1

    async def list_agents(self) -> list[AgentRecord]:
        self.list_calls += 1
        if self.fail_listing:
            raise ApiError("HTTP 502 from /prospecta/multiagente/get", 502)
        return [a.model_copy() for a in self.agents]

    async def create_agent(
        self,
        name: str,
        *,
        active: bool = True,
        is_principal: bool = False,
        trigger_enabled: bool = False,
        trigger_text: str = "",
    ) -> int | None:
        if name in self.fail_names:
            raise ApiError("HTTP 500 from /prospecta/multiagente/create", 500)
        record = AgentRecord(
            id=self._next_id, name=name, active=active, is_principal=is_principal
        )
        self._next_id += 1
        self.agents.append(record)
        self.created.append({"name": name, "is_principal": is_principal})
        return record.id if self.return_ids else None

    async def demote_principal(self, agent: AgentRecord) -> None:
        self.demoted.append(agent)
        self.agents = [
            a.model_copy(update={"is_principal": False}) if a.id == agent.id else a
            for a in self.agents
        ]


class FakeReference:
    """Candidate lists for the palette; counts every fetch."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fail = False

    def _hit(self, name: str) -> None:
        self.calls.append(name)
        if self.fail:
            raise ApiError(f"HTTP 500 from {name}", 500)

    async def tags(self) -> list[ReferenceItem]:
        self._hit("tags")
        return [ReferenceItem(id=1, name="Quente"), ReferenceItem(id=2, name="Frio")]

    async def agents_for_transfer(self, exclude_id: int | None = None) -> list[ReferenceItem]:
        self._hit("agents")
        items = [ReferenceItem(id=10, name="Bancário"), ReferenceItem(id=11, name="BPC")]
        return [i for i in items if i.id != exclude_id]

    async def users(self) -> list[ReferenceItem]:
        self._hit("users")
        return [ReferenceItem(id=5, name="Ana")]

    async def sources(self) -> list[ReferenceItem]:
        self._hit("sources")
        return [ReferenceItem(id=6, name="Instagram")]

    async def funnels(self) -> list[Funnel]:
        self._hit("funnels")
        return [
            Funnel(
                id=100,
                name="Vendas",
                stages=[ReferenceItem(id=101, name="Novo"), ReferenceItem(id=102, name="Proposta")],
            ),
            Funnel(id=200, name="Pós-venda", stages=[ReferenceItem(id=201, name="Onboarding")]),
        ]

    async def notifications(self) -> list[ReferenceItem]:
        self._hit("notifications")
        return [ReferenceItem(id=7, name="Avisar gerente")]

    async def products(self) -> list[ReferenceItem]:
        self._hit("products")
        return [ReferenceItem(id=8, name="Previdenciário")]


async def no_sleep(_: float) -> None:
    return None


@pytest.fixture
def registry() -> EmbedRegistry:
    return create_registry()


@pytest.fixture
def reference() -> FakeReference:
    return FakeReference()
