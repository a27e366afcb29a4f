"""Agent content store: rules, script steps and FAQ, each replaced wholesale."""

from collections.abc import Sequence

from core.api.client import ApiClient
from core.api.models import FaqPayload, ScriptStepPayload

RULES_PATH = "/prospecta/multiagente/regras/create"
STEPS_PATH = "/prospecta/multiagente/etapas/create"
FAQ_PATH = "/prospecta/multiagente/faq/create"

EMPTY_RULES_HTML = "<p></p>"


class ContentStore:
    """Persists an agent's rules, steps and FAQ. Raises ApiError on failure."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def save_rules(self, agent_id: int, rules_html: str) -> None:
        await self._client.send_json(
            "POST",
            RULES_PATH,
            {"regras": rules_html or EMPTY_RULES_HTML, "id_agente": agent_id},
        )

    async def save_steps(self, agent_id: int, steps: Sequence[ScriptStepPayload]) -> None:
        """Replace the agent's script steps. An empty list sends nothing."""
        if not steps:
            return
        await self._client.send_json(
            "POST", STEPS_PATH, [s.to_wire(agent_id) for s in steps]
        )

    async def save_faq(self, agent_id: int, faq: Sequence[FaqPayload]) -> None:
        """Replace the agent's FAQ. An empty list sends nothing."""
        if not faq:
            return
        await self._client.send_json(
            "POST", FAQ_PATH, [f.to_wire(agent_id) for f in faq]
        )
