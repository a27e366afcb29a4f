"""Tests for onboarding.single."""

import pytest

from conftest import FakeRegistry, no_sleep
from core.api.models import AgentRecord
from onboarding.naming import NameValidationError
from onboarding.single import (
    MSG_NOT_FOUND,
    MSG_UNVERIFIED,
    confirm_created_agent,
    create_single_agent,
)


class TestCreate:
    @pytest.mark.asyncio
    async def test_creates_with_trimmed_name(self) -> None:
        registry = FakeRegistry()
        record = await create_single_agent(registry, "  Bancário ", template_id="bancario")
        assert record.name == "Bancário"
        assert record.id == 1
        assert record.template_id == "bancario"
        assert registry.created == [{"name": "Bancário", "is_principal": False}]

    @pytest.mark.asyncio
    async def test_duplicate_name_writes_nothing(self) -> None:
        registry = FakeRegistry([AgentRecord(id=1, name="Bancário")])
        with pytest.raises(NameValidationError):
            await create_single_agent(registry, "bancário")
        assert registry.created == []

    @pytest.mark.asyncio
    async def test_principal_demotes_current(self) -> None:
        old = AgentRecord(id=4, name="Recepção", is_principal=True)
        registry = FakeRegistry([old])
        record = await create_single_agent(registry, "Nova Recepção", is_principal=True)
        assert [a.id for a in registry.demoted] == [4]
        assert record.is_principal
        assert [a.name for a in registry.agents if a.is_principal] == ["Nova Recepção"]

    @pytest.mark.asyncio
    async def test_missing_id_gives_provisional_record(self) -> None:
        registry = FakeRegistry(return_ids=False)
        record = await create_single_agent(registry, "BPC")
        assert record.id is None


class TestConfirm:
    @pytest.mark.asyncio
    async def test_found_by_id(self) -> None:
        registry = FakeRegistry([AgentRecord(id=3, name="BPC", trigger_text="oi")])
        provisional = AgentRecord(id=3, name="BPC", template_id="bpc")
        result = await confirm_created_agent(registry, provisional, sleep=no_sleep)
        assert result.confirmed
        assert result.agent.trigger_text == "oi"
        assert result.agent.template_id == "bpc"
        assert registry.list_calls == 1

    @pytest.mark.asyncio
    async def test_found_by_newest_name(self) -> None:
        registry = FakeRegistry([AgentRecord(id=3, name="BPC"), AgentRecord(id=9, name="bpc")])
        result = await confirm_created_agent(registry, AgentRecord(name="BPC"), sleep=no_sleep)
        assert result.agent.id == 9

    @pytest.mark.asyncio
    async def test_not_found_after_retries(self) -> None:
        registry = FakeRegistry()
        provisional = AgentRecord(id=42, name="BPC")
        result = await confirm_created_agent(registry, provisional, retries=2, sleep=no_sleep)
        assert not result.confirmed
        assert result.agent == provisional
        assert result.warning == MSG_NOT_FOUND
        assert registry.list_calls == 3

    @pytest.mark.asyncio
    async def test_listing_failure_warns_unverified(self) -> None:
        registry = FakeRegistry(fail_listing=True)
        result = await confirm_created_agent(
            registry, AgentRecord(id=1, name="BPC"), retries=1, sleep=no_sleep
        )
        assert result.warning == MSG_UNVERIFIED
