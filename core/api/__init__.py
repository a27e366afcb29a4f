"""HTTP collaborators consumed by the wizard: agents, content, reference data, media."""

from core.api.agents import AgentRegistry
from core.api.client import ApiClient, ApiError
from core.api.content import ContentStore
from core.api.media import MediaStore
from core.api.models import AgentRecord, Funnel, ReferenceItem
from core.api.reference import ReferenceData

__all__ = [
    "AgentRecord",
    "AgentRegistry",
    "ApiClient",
    "ApiError",
    "ContentStore",
    "Funnel",
    "MediaStore",
    "ReferenceData",
    "ReferenceItem",
]
