"""Agent registry collaborator: list, create, update."""

import logging
from typing import Any

from pydantic import ValidationError

from core.api.client import ApiClient
from core.api.models import AgentRecord

logger = logging.getLogger(__name__)

LIST_PATH = "/prospecta/multiagente/get"
CREATE_PATH = "/prospecta/multiagente/create"
UPDATE_PATH = "/prospecta/multiagente/update"


def extract_agent_id(body: Any) -> int | None:
    """Pull the new agent's id out of a create response, if the backend sent one.

    The backend is inconsistent: the id may sit under Id, id or agentId, at the
    top level or under data, and some responses are a one-element list.
    """
    if isinstance(body, list):
        body = body[0] if body else {}
    if not isinstance(body, dict):
        return None
    candidates: list[Any] = [body.get("Id"), body.get("id"), body.get("agentId")]
    data = body.get("data")
    if isinstance(data, dict):
        candidates += [data.get("Id"), data.get("id")]
    for value in candidates:
        if value in (None, "", 0):
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            continue
    return None


class AgentRegistry:
    """Agent CRUD over the webhook backend."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_agents(self) -> list[AgentRecord]:
        """Return every agent. Malformed entries are skipped."""
        data = await self._client.get_json(LIST_PATH)
        if not isinstance(data, list):
            logger.warning("Agent list is not an array (%s)", type(data).__name__)
            return []
        agents: list[AgentRecord] = []
        for raw in data:
            if not isinstance(raw, dict):
                continue
            try:
                agents.append(AgentRecord.model_validate(raw))
            except ValidationError as e:
                logger.debug("Skipping malformed agent entry: %s", e)
        return agents

    async def create_agent(
        self,
        name: str,
        *,
        active: bool = True,
        is_principal: bool = False,
        trigger_enabled: bool = False,
        trigger_text: str = "",
    ) -> int | None:
        """Create an agent. Returns its id when the response carries one, else None."""
        body = await self._client.send_json(
            "POST",
            CREATE_PATH,
            {
                "nome": name,
                "isAtivo": active,
                "isAgentePrincipal": is_principal,
                "isGatilho": trigger_enabled,
                "gatilho": trigger_text,
            },
        )
        return extract_agent_id(body)

    async def update_agent(self, agent: AgentRecord) -> None:
        await self._client.send_json("PUT", UPDATE_PATH, agent.to_wire())

    async def demote_principal(self, agent: AgentRecord) -> None:
        """Clear the principal flag on an existing agent, keeping its other fields."""
        logger.info("Demoting current principal agent %s (%s)", agent.id, agent.name)
        await self.update_agent(agent.model_copy(update={"is_principal": False}))


def latest_by_name(agents: list[AgentRecord], name: str) -> AgentRecord | None:
    """The agent named name (case-insensitive, trimmed) with the largest id.

    Largest id is taken to be the newest; concurrent creations under the
    same name can still make this pick the wrong one.
    """
    wanted = name.strip().lower()
    matches = [a for a in agents if a.id and a.name.strip().lower() == wanted]
    return max(matches, key=lambda a: a.id, default=None)
