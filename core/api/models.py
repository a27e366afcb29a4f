"""Wire models for the webhook backend. Field aliases carry the backend's names."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AgentRecord(BaseModel):
    """One agent as listed by the registry."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | None = Field(default=None, alias="Id")
    name: str = Field(default="", alias="nome")
    active: bool = Field(default=True, alias="isAtivo")
    is_principal: bool = Field(default=False, alias="isAgentePrincipal")
    trigger_enabled: bool = Field(default=False, alias="isGatilho")
    trigger_text: str = Field(default="", alias="gatilho")
    # Local bookkeeping: which template the agent was created from; never sent
    template_id: str | None = Field(default=None, exclude=True)

    @field_validator("name", "trigger_text", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    def to_wire(self) -> dict:
        """Body for the update endpoint."""
        return self.model_dump(by_alias=True)


class ReferenceItem(BaseModel):
    """Selectable entry offered by a reference-data provider (tag, user, source, ...)."""

    id: int
    name: str


class Funnel(BaseModel):
    """CRM funnel with its stages; stage transfer is a two-level choice."""

    id: int
    name: str
    stages: list[ReferenceItem] = Field(default_factory=list)


class ScriptStepPayload(BaseModel):
    """One script step as persisted by the content store."""

    order: int
    name: str
    body_html: str

    def to_wire(self, agent_id: int) -> dict:
        return {
            "ordem": self.order,
            "nome": self.name,
            "descricao": self.body_html,
            "id_agente": agent_id,
        }


class FaqPayload(BaseModel):
    """One FAQ entry as persisted by the content store."""

    order: int
    question: str | None = None
    answer_html: str

    def to_wire(self, agent_id: int) -> dict:
        return {
            "ordem": self.order,
            "nome": self.question,
            "descricao": self.answer_html,
            "id_agente": agent_id,
        }
