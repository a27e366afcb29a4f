"""Embed registry: which inline/block embeds a session's documents understand.

Built once per wizard session with create_registry() and handed to every
component that reads or writes step HTML.
"""

import html
from collections.abc import Mapping
from typing import Protocol

from editor import tokens
from editor.richtext import DecisionEmbed, Embed, MediaEmbed
from editor.tokens import DecodeError

MEDIA_CLASS = "ql-media"


class EmbedCodec(Protocol):
    """Reads and writes one embed type."""

    blot_name: str
    block: bool

    def claims_element(self, tag: str, attrs: Mapping[str, str]) -> bool: ...

    def claims_embed(self, embed: Embed) -> bool: ...

    def read(self, tag: str, attrs: Mapping[str, str], text: str) -> Embed:
        """Raise DecodeError when the element is not a valid embed."""

    def write(self, embed: Embed) -> str: ...


class DecisionEmbedCodec:
    """Inline decision tokens."""

    blot_name = tokens.BLOT_NAME
    block = False

    def claims_element(self, tag: str, attrs: Mapping[str, str]) -> bool:
        return tokens.is_token_element(tag, attrs)

    def claims_embed(self, embed: Embed) -> bool:
        return isinstance(embed, DecisionEmbed)

    def read(self, tag: str, attrs: Mapping[str, str], text: str) -> DecisionEmbed:
        return DecisionEmbed(tokens.decode(attrs))

    def write(self, embed: Embed) -> str:
        if not isinstance(embed, DecisionEmbed):
            raise TypeError(f"{self.blot_name} cannot write {type(embed).__name__}")
        return tokens.encode(embed.token).to_html()


class MediaEmbedCodec:
    """Uploaded images, video, audio and PDFs. Occupies its own line."""

    blot_name = "media"
    block = True

    def claims_element(self, tag: str, attrs: Mapping[str, str]) -> bool:
        return tag == "div" and MEDIA_CLASS in (attrs.get("class") or "").split()

    def claims_embed(self, embed: Embed) -> bool:
        return isinstance(embed, MediaEmbed)

    def read(self, tag: str, attrs: Mapping[str, str], text: str) -> MediaEmbed:
        url = attrs.get("data-url") or ""
        if not url:
            raise DecodeError("media element has no data-url")
        return MediaEmbed(
            url=url,
            mime_type=attrs.get("data-type") or "",
            name=attrs.get("data-name") or "",
        )

    def write(self, embed: Embed) -> str:
        if not isinstance(embed, MediaEmbed):
            raise TypeError(f"{self.blot_name} cannot write {type(embed).__name__}")
        url = html.escape(embed.url, quote=True)
        name = html.escape(embed.name, quote=True)
        mime = embed.mime_type
        if mime.startswith("image/"):
            body = f'<img src="{url}" alt="{name}" style="max-width:300px;border-radius:8px;" />'
        elif mime.startswith("video/"):
            body = f'<video src="{url}" controls style="max-width:200px;border-radius:8px;"></video>'
        elif mime.startswith("audio/"):
            body = f'<audio src="{url}" controls style="width:300px;"></audio>'
        else:
            body = f'<a href="{url}" target="_blank">{name or "Abrir arquivo"}</a>'
        return (
            f'<div class="{MEDIA_CLASS}" contenteditable="false" data-url="{url}" '
            f'data-type="{html.escape(mime, quote=True)}" data-name="{name}">{body}</div>'
        )


class EmbedRegistry:
    """Name -> codec table. Registering a name twice is an error."""

    def __init__(self) -> None:
        self._codecs: dict[str, EmbedCodec] = {}

    def register(self, codec: EmbedCodec) -> None:
        if codec.blot_name in self._codecs:
            raise ValueError(f"Embed {codec.blot_name!r} is already registered")
        self._codecs[codec.blot_name] = codec

    def names(self) -> list[str]:
        return list(self._codecs)

    def codec_for_element(self, tag: str, attrs: Mapping[str, str]) -> EmbedCodec | None:
        for codec in self._codecs.values():
            if codec.claims_element(tag, attrs):
                return codec
        return None

    def codec_for_embed(self, embed: Embed) -> EmbedCodec:
        for codec in self._codecs.values():
            if codec.claims_embed(embed):
                return codec
        raise KeyError(f"No codec registered for {type(embed).__name__}")


def create_registry() -> EmbedRegistry:
    """Registry with the decision-token and media embeds."""
    registry = EmbedRegistry()
    registry.register(DecisionEmbedCodec())
    registry.register(MediaEmbedCodec())
    return registry
