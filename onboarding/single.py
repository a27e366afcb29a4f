"""Single-agent creation: define-name and creation-confirm."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from core.api.agents import AgentRegistry, latest_by_name
from core.api.client import ApiError
from core.api.models import AgentRecord
from onboarding.naming import validate_agent_name

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

MSG_NOT_FOUND = "Agente criado, mas dados completos não foram encontrados"
MSG_UNVERIFIED = "Não foi possível verificar os dados do agente"


@dataclass
class ConfirmResult:
    agent: AgentRecord
    confirmed: bool
    warning: str | None = None


async def create_single_agent(
    registry: AgentRegistry,
    name: str,
    *,
    is_principal: bool = False,
    template_id: str | None = None,
) -> AgentRecord:
    """Validate the name, demote the old principal if needed, and create the agent.

    Returns a provisional record; its id is None when the backend did not
    report one. Raises NameValidationError before anything is written, and
    ApiError when the backend refuses.
    """
    agents = await registry.list_agents()
    trimmed = validate_agent_name(name, [a.name for a in agents])

    if is_principal:
        current = next((a for a in agents if a.is_principal), None)
        if current is not None:
            await registry.demote_principal(current)

    agent_id = await registry.create_agent(
        trimmed,
        active=True,
        is_principal=is_principal,
        trigger_enabled=False,
        trigger_text="",
    )
    logger.info("Created agent %r (id=%s)", trimmed, agent_id)
    return AgentRecord(
        id=agent_id,
        name=trimmed,
        active=True,
        is_principal=is_principal,
        trigger_enabled=False,
        trigger_text="",
        template_id=template_id,
    )


async def confirm_created_agent(
    registry: AgentRegistry,
    provisional: AgentRecord,
    *,
    retries: int = 5,
    delay: float = 1.0,
    sleep: Sleep = asyncio.sleep,
) -> ConfirmResult:
    """Look the new agent up by id, or by name when the id is unknown.

    Polls up to retries more times, delay seconds apart. When it never shows
    up the provisional record is kept and a warning is returned.
    """
    last_error: ApiError | None = None
    for attempt in range(retries + 1):
        if attempt:
            await sleep(delay)
        try:
            agents = await registry.list_agents()
        except ApiError as e:
            last_error = e
            logger.warning("Confirm lookup %d failed: %s", attempt + 1, e)
            continue
        last_error = None
        if provisional.id:
            found = next((a for a in agents if a.id == provisional.id), None)
        else:
            found = latest_by_name(agents, provisional.name)
        if found is not None:
            return ConfirmResult(
                agent=found.model_copy(update={"template_id": provisional.template_id}),
                confirmed=True,
            )

    warning = MSG_UNVERIFIED if last_error is not None else MSG_NOT_FOUND
    logger.warning("%s: %s", warning, provisional.name)
    return ConfirmResult(agent=provisional, confirmed=False, warning=warning)
