"""Tests for onboarding.batch."""

from unittest.mock import AsyncMock

import pytest

from conftest import FakeRegistry, no_sleep
from core.api.client import ApiError
from core.api.models import AgentRecord
from onboarding.batch import (
    DEFAULT_PRINCIPAL_NAME,
    AgentCreationStatus,
    BatchCreationCoordinator,
    CreationState,
    IdentifierResolutionError,
)
from onboarding.state import PRINCIPAL_KEY
from onboarding.templates import AgentTemplate

BANCARIO = AgentTemplate(id="bancario", name="Bancário")
BPC = AgentTemplate(id="bpc", name="BPC")
MATERNIDADE = AgentTemplate(id="maternidade", name="Salário Maternidade")


def _coordinator(registry: FakeRegistry, **kwargs) -> BatchCreationCoordinator:
    return BatchCreationCoordinator(registry, sleep=no_sleep, **kwargs)


@pytest.mark.asyncio
async def test_collisions_get_suffixes() -> None:
    registry = FakeRegistry([AgentRecord(id=1, name="Bancário")])
    result = await _coordinator(registry).run([BANCARIO, BPC])

    names = [s.resolved_name for s in result.specialists]
    assert names == ["Bancário (2)", "BPC"]
    assert all(s.state == CreationState.SUCCESS for s in result.statuses)
    assert all(s.agent_id is not None for s in result.statuses)
    assert result.principal.resolved_name == DEFAULT_PRINCIPAL_NAME
    assert registry.created[0] == {"name": DEFAULT_PRINCIPAL_NAME, "is_principal": True}


@pytest.mark.asyncio
async def test_names_unique_within_run() -> None:
    twin = AgentTemplate(id="bancario-2", name="Bancário")
    result = await _coordinator(FakeRegistry()).run([BANCARIO, twin])
    assert [s.resolved_name for s in result.specialists] == ["Bancário", "Bancário (2)"]


@pytest.mark.asyncio
async def test_partial_failure_continues() -> None:
    registry = FakeRegistry(fail_names=("BPC",))
    result = await _coordinator(registry).run([BANCARIO, BPC, MATERNIDADE])

    states = [s.state for s in result.specialists]
    assert states == [CreationState.SUCCESS, CreationState.ERROR, CreationState.SUCCESS]
    assert "BPC" in result.specialists[1].error
    assert result.success_count == 3
    assert result.error_count == 1
    assert result.can_continue


@pytest.mark.asyncio
async def test_everything_failing_cannot_continue() -> None:
    registry = FakeRegistry(fail_names=(DEFAULT_PRINCIPAL_NAME, "BPC"))
    result = await _coordinator(registry).run([BPC])
    assert not result.can_continue


@pytest.mark.asyncio
async def test_overrides_and_principal_name() -> None:
    registry = FakeRegistry()
    result = await _coordinator(registry).run(
        [BANCARIO, BPC], {PRINCIPAL_KEY: "Recepção", "bpc": "Loas"}
    )
    assert [s.resolved_name for s in result.statuses] == ["Recepção", "Bancário", "Loas"]


@pytest.mark.asyncio
async def test_missing_id_resolved_by_listing() -> None:
    registry = FakeRegistry(return_ids=False)
    result = await _coordinator(registry).run([BPC])
    assert [s.agent_id for s in result.statuses] == [1, 2]
    assert registry.list_calls == 3


@pytest.mark.asyncio
async def test_unresolvable_id_is_an_error() -> None:
    registry = FakeRegistry(return_ids=False)
    registry.list_agents = AsyncMock(return_value=[])
    result = await _coordinator(registry).run([BPC])
    assert result.specialists[0].state == CreationState.ERROR
    assert result.specialists[0].error == "ID do agente não retornado"


@pytest.mark.asyncio
async def test_existing_principal_demoted() -> None:
    old = AgentRecord(id=7, name="Antiga", is_principal=True)
    registry = FakeRegistry([old])
    await _coordinator(registry).run([])
    assert [a.id for a in registry.demoted] == [7]


@pytest.mark.asyncio
async def test_demotion_failure_does_not_stop_batch() -> None:
    registry = FakeRegistry([AgentRecord(id=7, name="Antiga", is_principal=True)])
    registry.demote_principal = AsyncMock(side_effect=ApiError("HTTP 500", 500))
    result = await _coordinator(registry).run([BPC])
    assert result.principal.state == CreationState.SUCCESS


@pytest.mark.asyncio
async def test_listing_failure_leaves_names_unchecked() -> None:
    registry = FakeRegistry([AgentRecord(id=1, name="BPC")], fail_listing=True)
    result = await _coordinator(registry).run([BPC])
    assert result.specialists[0].resolved_name == "BPC"


@pytest.mark.asyncio
async def test_progress_reported() -> None:
    seen: list[tuple[str, CreationState]] = []

    def on_progress(status: AgentCreationStatus) -> None:
        seen.append((status.template_id, status.state))

    await _coordinator(FakeRegistry(), on_progress=on_progress).run([BPC])
    assert seen == [
        (PRINCIPAL_KEY, CreationState.PENDING),
        ("bpc", CreationState.PENDING),
        (PRINCIPAL_KEY, CreationState.CREATING),
        (PRINCIPAL_KEY, CreationState.SUCCESS),
        ("bpc", CreationState.CREATING),
        ("bpc", CreationState.SUCCESS),
    ]


class TestResolve:
    @pytest.mark.asyncio
    async def test_principal_first_with_template_ids(self) -> None:
        registry = FakeRegistry([AgentRecord(id=1, name="Bancário")])
        coordinator = _coordinator(registry)
        result = await coordinator.run([BANCARIO, BPC])
        agents = await coordinator.resolve_created_agents(result)
        assert [a.name for a in agents] == [DEFAULT_PRINCIPAL_NAME, "Bancário (2)", "BPC"]
        assert [a.template_id for a in agents] == [PRINCIPAL_KEY, "bancario", "bpc"]
        assert agents[0].is_principal

    @pytest.mark.asyncio
    async def test_failed_items_skipped(self) -> None:
        registry = FakeRegistry(fail_names=("BPC",))
        coordinator = _coordinator(registry)
        result = await coordinator.run([BPC, BANCARIO])
        agents = await coordinator.resolve_created_agents(result)
        assert [a.template_id for a in agents] == [PRINCIPAL_KEY, "bancario"]

    @pytest.mark.asyncio
    async def test_nothing_found_raises(self) -> None:
        registry = FakeRegistry()
        coordinator = _coordinator(registry)
        result = await coordinator.run([BPC])
        registry.agents = []
        with pytest.raises(IdentifierResolutionError):
            await coordinator.resolve_created_agents(result)
