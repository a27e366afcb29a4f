"""Decision tokens: structured actions embedded inline in script text.

A token travels inside step HTML as a tagged span fragment. Everything needed
to rebuild the token lives in its data-* attributes; the style attribute and
the visible text are derived from the kind and are never read back.
"""

import html
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

BLOT_NAME = "smartDecision"
TOKEN_CLASS = "ql-smart-decision"
# Class used by documents written before tokens became editor embeds
LEGACY_TOKEN_CLASS = "smart-decision-token"


class DecisionKind(StrEnum):
    ADD_TAG = "add_tag"
    TRANSFER_AGENT = "transfer_agent"
    TRANSFER_USER = "transfer_user"
    ASSIGN_SOURCE = "assign_source"
    TRANSFER_STAGE = "transfer_stage"
    NOTIFY = "notify"
    ASSIGN_PRODUCT = "assign_product"
    STOP_AGENT = "stop_agent"


PARAMETERLESS_KINDS = frozenset({DecisionKind.STOP_AGENT})

ACTION_VERBS: dict[DecisionKind, str] = {
    DecisionKind.ADD_TAG: "Adicionar Etiqueta",
    DecisionKind.TRANSFER_AGENT: "Transferir para Agente",
    DecisionKind.TRANSFER_USER: "Transferir para Usuário",
    DecisionKind.ASSIGN_SOURCE: "Atribuir Origem",
    DecisionKind.TRANSFER_STAGE: "Mudar Estágio no CRM",
    DecisionKind.NOTIFY: "Notificar Equipe",
    DecisionKind.ASSIGN_PRODUCT: "Atribuir Departamento",
    DecisionKind.STOP_AGENT: "Desativar Agente",
}


@dataclass(frozen=True)
class TokenStyle:
    background: str
    border: str
    color: str


_STYLES: dict[DecisionKind, TokenStyle] = {
    DecisionKind.ADD_TAG: TokenStyle("#FFF7ED", "#FED7AA", "#9A3412"),
    DecisionKind.TRANSFER_AGENT: TokenStyle("#EFF6FF", "#BFDBFE", "#1E40AF"),
    DecisionKind.TRANSFER_USER: TokenStyle("#ECFDF5", "#BBF7D0", "#065F46"),
    DecisionKind.ASSIGN_SOURCE: TokenStyle("#F5F3FF", "#DDD6FE", "#5B21B6"),
    DecisionKind.TRANSFER_STAGE: TokenStyle("#E0F2FE", "#BAE6FD", "#075985"),
    DecisionKind.NOTIFY: TokenStyle("#FEF9C3", "#FDE68A", "#92400E"),
    DecisionKind.ASSIGN_PRODUCT: TokenStyle("#FCE7F3", "#FBCFE8", "#9D174D"),
    DecisionKind.STOP_AGENT: TokenStyle("#FEF2F2", "#FECACA", "#991B1B"),
}

_BASE_STYLE = (
    "display:inline-flex;align-items:center;border-radius:6px;padding:4px 10px;"
    "margin:0 2px;font-size:12px;font-weight:500;white-space:nowrap;"
    "line-height:1.4;user-select:none;"
)


class DecodeError(ValueError):
    """Fragment does not describe a valid decision token."""


@dataclass(frozen=True)
class DecisionToken:
    """Immutable reference to an automatable action. Edits replace the token."""

    kind: DecisionKind
    target_id: int | None
    label: str = ""

    def __post_init__(self) -> None:
        if self.kind in PARAMETERLESS_KINDS:
            if self.target_id is not None:
                raise ValueError(f"{self.kind} takes no target id")
        elif self.target_id is None:
            raise ValueError(f"{self.kind} requires a target id")


@dataclass(frozen=True)
class Fragment:
    """Inline HTML element: tag, ordered attributes and visible text."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    text: str = ""

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.attrs.get(name, default)

    def to_html(self) -> str:
        attrs = "".join(
            f' {k}="{html.escape(v, quote=True)}"' for k, v in self.attrs.items()
        )
        inner = f"<span>{html.escape(self.text, quote=False)}</span>"
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"


def style_for(kind: DecisionKind) -> TokenStyle:
    return _STYLES[kind]


def css_for(kind: DecisionKind) -> str:
    s = style_for(kind)
    return f"{_BASE_STYLE}background:{s.background};border:1px solid {s.border};color:{s.color};"


def render_label(token: DecisionToken) -> str:
    """Human-readable text: "Verb: label", or the bare verb for parameterless kinds."""
    verb = ACTION_VERBS[token.kind]
    if token.kind in PARAMETERLESS_KINDS or not token.label:
        return verb
    return f"{verb}: {token.label}"


def encode(token: DecisionToken) -> Fragment:
    """Encode a token as its inline fragment. Deterministic attribute order."""
    attrs = {"class": TOKEN_CLASS, "data-type": token.kind.value}
    if token.target_id is not None:
        attrs["data-id"] = str(token.target_id)
    attrs["data-label"] = token.label
    attrs["contenteditable"] = "false"
    attrs["style"] = css_for(token.kind)
    return Fragment(tag="span", attrs=attrs, text=render_label(token))


def decode(fragment: Fragment | Mapping[str, str | None]) -> DecisionToken:
    """Rebuild a token from a fragment or its raw attributes. Raises DecodeError."""
    attrs = fragment.attrs if isinstance(fragment, Fragment) else fragment
    raw_kind = attrs.get("data-type") or ""
    try:
        kind = DecisionKind(raw_kind)
    except ValueError:
        raise DecodeError(f"Unknown decision kind {raw_kind!r}") from None

    target_id: int | None = None
    raw_id = attrs.get("data-id")
    if kind not in PARAMETERLESS_KINDS:
        if raw_id is None or raw_id == "":
            raise DecodeError(f"{kind} fragment has no data-id")
        try:
            target_id = int(raw_id)
        except ValueError:
            raise DecodeError(f"Invalid data-id {raw_id!r}") from None

    return DecisionToken(kind=kind, target_id=target_id, label=attrs.get("data-label") or "")


def is_token_element(tag: str, attrs: Mapping[str, str | None]) -> bool:
    """True when an HTML element is a decision token fragment."""
    classes = (attrs.get("class") or "").split()
    return tag == "span" and (TOKEN_CLASS in classes or LEGACY_TOKEN_CLASS in classes)
