"""Agent templates: bundled YAML files, one per template."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "agent_templates"

PRINCIPAL_LEVEL = 1
SPECIALIST_LEVEL = 2


class TemplateStep(BaseModel):
    order: int
    name: str
    body_html: str = ""


class TemplateFaq(BaseModel):
    order: int
    question: str | None = None
    answer_html: str = ""


class AgentTemplate(BaseModel):
    """Starting content for a new agent. Level 1 is the principal, level 2 a specialist."""

    id: str
    name: str
    area: str = ""
    description: str = ""
    level: int = SPECIALIST_LEVEL
    rules_html: str = ""
    steps: list[TemplateStep] = Field(default_factory=list)
    faq: list[TemplateFaq] = Field(default_factory=list)

    @property
    def is_principal(self) -> bool:
        return self.level == PRINCIPAL_LEVEL


def load_templates(directory: Path | None = None) -> list[AgentTemplate]:
    """Load every *.yaml template in directory, sorted by level then name.

    Files that fail to parse or validate are skipped with a warning.
    """
    root = directory or TEMPLATES_DIR
    if not root.is_dir():
        logger.warning("Template directory %s does not exist", root)
        return []
    templates: list[AgentTemplate] = []
    for path in sorted(root.glob("*.yaml")):
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            templates.append(AgentTemplate.model_validate(data))
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.warning("Skipping template %s: %s", path.name, e)
    templates.sort(key=lambda t: (t.level, t.name.lower()))
    return templates


def principal_template(templates: list[AgentTemplate]) -> AgentTemplate | None:
    return next((t for t in templates if t.is_principal), None)


def specialist_templates(
    templates: list[AgentTemplate], query: str = ""
) -> list[AgentTemplate]:
    """Level-2 templates whose name or area contains query (case-insensitive)."""
    needle = query.strip().lower()
    return [
        t
        for t in templates
        if t.level == SPECIALIST_LEVEL
        and (not needle or needle in t.name.lower() or needle in t.area.lower())
    ]
