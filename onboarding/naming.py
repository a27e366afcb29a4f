"""Agent name validation and collision-free naming."""

from collections.abc import Iterable, Mapping, Sequence

from onboarding.state import PRINCIPAL_KEY
from onboarding.templates import AgentTemplate

MSG_EMPTY = "O nome não pode estar vazio"
MSG_EXISTS = "Já existe um agente com esse nome"
MSG_DUPLICATE = "Nome duplicado nesta lista"
MSG_SAME_AS_PRINCIPAL = "Nome igual ao agente principal"


class NameValidationError(ValueError):
    """One or more names were rejected. errors maps field key -> message."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


def _key(name: str) -> str:
    return name.strip().lower()


def validate_agent_name(name: str, existing: Iterable[str]) -> str:
    """Trimmed name, or NameValidationError when empty or already taken."""
    trimmed = name.strip()
    if not trimmed:
        raise NameValidationError({"name": MSG_EMPTY})
    if _key(trimmed) in {_key(n) for n in existing}:
        raise NameValidationError({"name": MSG_EXISTS})
    return trimmed


def unique_name(desired: str, taken: Iterable[str]) -> str:
    """desired, or desired with " (N)" appended (N from 2) until it matches nothing in taken."""
    taken_keys = {_key(n) for n in taken}
    candidate = desired
    counter = 2
    while _key(candidate) in taken_keys:
        candidate = f"{desired} ({counter})"
        counter += 1
    return candidate


def validate_multi_names(
    principal_name: str,
    templates: Sequence[AgentTemplate],
    overrides: Mapping[str, str],
    existing: Iterable[str],
) -> dict[str, str]:
    """Check the principal name and every specialist override together.

    Returns the override map to store: PRINCIPAL_KEY plus one entry per
    template with a non-blank override. Blank overrides fall back to the
    template name at creation time and are not checked here.
    Raises NameValidationError listing every rejected field.
    """
    existing_keys = {_key(n) for n in existing}
    errors: dict[str, str] = {}
    accepted: dict[str, str] = {}

    principal = principal_name.strip()
    custom = {
        t.id: overrides.get(t.id, "").strip()
        for t in templates
        if overrides.get(t.id, "").strip()
    }

    if not principal:
        errors[PRINCIPAL_KEY] = MSG_EMPTY
    elif _key(principal) in existing_keys:
        errors[PRINCIPAL_KEY] = MSG_EXISTS
    elif _key(principal) in {_key(n) for n in custom.values()}:
        errors[PRINCIPAL_KEY] = MSG_DUPLICATE
    else:
        accepted[PRINCIPAL_KEY] = principal

    for template_id, name in custom.items():
        others = [n for tid, n in custom.items() if tid != template_id]
        if _key(name) in existing_keys:
            errors[template_id] = MSG_EXISTS
        elif _key(name) in {_key(n) for n in others}:
            errors[template_id] = MSG_DUPLICATE
        elif principal and _key(name) == _key(principal):
            errors[template_id] = MSG_SAME_AS_PRINCIPAL
        else:
            accepted[template_id] = name

    if errors:
        raise NameValidationError(errors)
    return accepted


def desired_name(template: AgentTemplate, overrides: Mapping[str, str]) -> str:
    return overrides.get(template.id, "").strip() or template.name
