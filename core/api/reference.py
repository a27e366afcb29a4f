"""Read-only reference data offered by the command palette and template screens."""

import logging
from typing import Any

from core.api.agents import AgentRegistry
from core.api.client import ApiClient
from core.api.models import Funnel, ReferenceItem

logger = logging.getLogger(__name__)

TAGS_PATH = "/prospecta/tag/list"
USERS_PATH = "/prospectai/usuario/get"
SOURCES_PATH = "/prospecta/fonte/get"
FUNNELS_PATH = "/prospecta/funil/get"
FUNCTIONS_PATH = "/prospecta/multiagente/funcao/geral"
PRODUCTS_PATH = "/produtos/get"

NOTIFICATION_TYPE = "NOTIFICACAO"


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _items(data: Any, id_key: str = "Id") -> list[ReferenceItem]:
    """Normalize a backend list into ReferenceItems, dropping entries without an id."""
    if not isinstance(data, list):
        return []
    out: list[ReferenceItem] = []
    for raw in data:
        if not isinstance(raw, dict):
            continue
        item_id = _to_int(raw.get(id_key))
        if not item_id:
            continue
        out.append(ReferenceItem(id=item_id, name=str(raw.get("nome") or "")))
    return out


class ReferenceData:
    """Candidate lists for decision tokens. Nothing is cached: every call refetches."""

    def __init__(self, client: ApiClient, agents: AgentRegistry | None = None) -> None:
        self._client = client
        self._agents = agents or AgentRegistry(client)

    async def tags(self) -> list[ReferenceItem]:
        return _items(await self._client.get_json(TAGS_PATH))

    async def agents_for_transfer(
        self, exclude_id: int | None = None
    ) -> list[ReferenceItem]:
        """Active agents other than the one being edited."""
        return [
            ReferenceItem(id=a.id, name=a.name)
            for a in await self._agents.list_agents()
            if a.id and a.id != exclude_id and a.active
        ]

    async def users(self) -> list[ReferenceItem]:
        return _items(await self._client.get_json(USERS_PATH))

    async def sources(self) -> list[ReferenceItem]:
        return _items(await self._client.get_json(SOURCES_PATH))

    async def products(self) -> list[ReferenceItem]:
        return _items(await self._client.get_json(PRODUCTS_PATH))

    async def funnels(self) -> list[Funnel]:
        data = await self._client.get_json(FUNNELS_PATH)
        if not isinstance(data, list):
            return []
        out: list[Funnel] = []
        for raw in data:
            if not isinstance(raw, dict):
                continue
            funnel_id = _to_int(raw.get("id"))
            if not funnel_id:
                continue
            out.append(
                Funnel(
                    id=funnel_id,
                    name=str(raw.get("nome") or ""),
                    stages=_items(raw.get("estagios")),
                )
            )
        return out

    async def notifications(self) -> list[ReferenceItem]:
        """Notification functions configured on the principal agent.

        Empty when no principal agent exists.
        """
        principal = next(
            (a for a in await self._agents.list_agents() if a.is_principal and a.id),
            None,
        )
        if principal is None:
            logger.debug("No principal agent; no notification functions to offer")
            return []
        data = await self._client.get_json(
            FUNCTIONS_PATH, params={"id_agente": principal.id}
        )
        if not isinstance(data, list):
            return []
        return _items(
            [f for f in data if isinstance(f, dict) and f.get("tipo") == NOTIFICATION_TYPE],
            id_key="id",
        )
