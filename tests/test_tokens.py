"""Tests for editor.tokens: the decision-token codec."""

import pytest

from editor.tokens import (
    ACTION_VERBS,
    LEGACY_TOKEN_CLASS,
    TOKEN_CLASS,
    DecisionKind,
    DecisionToken,
    DecodeError,
    Fragment,
    css_for,
    decode,
    encode,
    is_token_element,
    render_label,
)

VALID_TOKENS = [
    DecisionToken(DecisionKind.ADD_TAG, 1, "Quente"),
    DecisionToken(DecisionKind.TRANSFER_AGENT, 10, "Bancário"),
    DecisionToken(DecisionKind.TRANSFER_USER, 5, "Ana"),
    DecisionToken(DecisionKind.ASSIGN_SOURCE, 6, "Instagram"),
    DecisionToken(DecisionKind.TRANSFER_STAGE, 101, "Novo"),
    DecisionToken(DecisionKind.NOTIFY, 7, 'Avisar "gerente" <já>'),
    DecisionToken(DecisionKind.ASSIGN_PRODUCT, 8, ""),
    DecisionToken(DecisionKind.STOP_AGENT, None),
]


@pytest.mark.parametrize("token", VALID_TOKENS, ids=lambda t: t.kind.value)
def test_decode_inverts_encode(token: DecisionToken) -> None:
    """Every valid token survives encode then decode unchanged."""
    assert decode(encode(token)) == token


def test_encode_is_deterministic() -> None:
    """Equal tokens encode to identical fragments and HTML."""
    a = DecisionToken(DecisionKind.ADD_TAG, 3, "VIP")
    b = DecisionToken(DecisionKind.ADD_TAG, 3, "VIP")
    assert encode(a) == encode(b)
    assert encode(a).to_html() == encode(b).to_html()


def test_encode_attribute_order_and_payload() -> None:
    fragment = encode(DecisionToken(DecisionKind.TRANSFER_STAGE, 42, "Proposta"))
    assert list(fragment.attrs) == [
        "class",
        "data-type",
        "data-id",
        "data-label",
        "contenteditable",
        "style",
    ]
    assert fragment.attrs["class"] == TOKEN_CLASS
    assert fragment.attrs["data-id"] == "42"
    assert fragment.text == "Mudar Estágio no CRM: Proposta"


def test_stop_agent_has_no_data_id() -> None:
    fragment = encode(DecisionToken(DecisionKind.STOP_AGENT, None))
    assert "data-id" not in fragment.attrs
    assert fragment.text == "Desativar Agente"


def test_decode_ignores_style_and_text() -> None:
    """Styling is derived from kind; a fragment without it still decodes."""
    attrs = {"data-type": "add_tag", "data-id": "9", "data-label": "Frio"}
    assert decode(attrs) == DecisionToken(DecisionKind.ADD_TAG, 9, "Frio")
    assert decode(Fragment("span", attrs, text="anything")) == decode(attrs)


def test_decode_rejects_unknown_kind() -> None:
    with pytest.raises(DecodeError):
        decode({"data-type": "launch_rocket", "data-id": "1", "data-label": "x"})


def test_decode_rejects_missing_kind() -> None:
    with pytest.raises(DecodeError):
        decode({"data-id": "1"})


@pytest.mark.parametrize("raw_id", [None, "", "abc"])
def test_decode_rejects_bad_target_id(raw_id: str | None) -> None:
    attrs = {"data-type": "transfer_user", "data-label": "Ana"}
    if raw_id is not None:
        attrs["data-id"] = raw_id
    with pytest.raises(DecodeError):
        decode(attrs)


def test_decode_error_is_value_error() -> None:
    assert issubclass(DecodeError, ValueError)


def test_token_requires_target_unless_parameterless() -> None:
    with pytest.raises(ValueError):
        DecisionToken(DecisionKind.ADD_TAG, None, "x")
    with pytest.raises(ValueError):
        DecisionToken(DecisionKind.STOP_AGENT, 3)


def test_render_label() -> None:
    assert render_label(DecisionToken(DecisionKind.NOTIFY, 1, "Equipe")) == "Notificar Equipe: Equipe"
    assert render_label(DecisionToken(DecisionKind.STOP_AGENT, None)) == "Desativar Agente"


def test_every_kind_has_verb_and_style() -> None:
    for kind in DecisionKind:
        assert ACTION_VERBS[kind]
        assert "background:" in css_for(kind)
    assert len(set(css_for(k) for k in DecisionKind)) == len(DecisionKind)


def test_is_token_element_accepts_legacy_class() -> None:
    assert is_token_element("span", {"class": TOKEN_CLASS})
    assert is_token_element("span", {"class": f"foo {LEGACY_TOKEN_CLASS}"})
    assert not is_token_element("div", {"class": TOKEN_CLASS})
    assert not is_token_element("span", {"class": "other"})


def test_fragment_html_escapes_label() -> None:
    html = encode(DecisionToken(DecisionKind.NOTIFY, 7, 'A "B" <C>')).to_html()
    assert 'data-label="A &quot;B&quot; &lt;C&gt;"' in html
    assert "<C>" not in html
