"""Decision-token embedding for script-step documents."""

from editor.registry import EmbedRegistry, create_registry
from editor.richtext import DecisionEmbed, MediaEmbed, RichText, TextRun
from editor.tokens import DecisionKind, DecisionToken, DecodeError

__all__ = [
    "DecisionEmbed",
    "DecisionKind",
    "DecisionToken",
    "DecodeError",
    "EmbedRegistry",
    "MediaEmbed",
    "RichText",
    "TextRun",
    "create_registry",
]
