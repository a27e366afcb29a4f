"""Find a clicked decision token's offset inside a document.

Documents are rebuilt from HTML on every render, so there is no object
identity to hold on to. A clicked token is matched by value: the first embed
whose token equals the clicked one wins. Two identical tokens in the same
document are indistinguishable.
"""

import logging
from collections.abc import Mapping

from editor.richtext import DecisionEmbed, RichText
from editor.tokens import DecodeError, DecisionToken, Fragment, decode

logger = logging.getLogger(__name__)


def locate(
    document: RichText, clicked: Fragment | Mapping[str, str | None] | DecisionToken
) -> int | None:
    """Offset of the first embed structurally equal to clicked, or None.

    None covers both "no such token" (the document changed underneath) and a
    clicked fragment that does not decode.
    """
    if isinstance(clicked, DecisionToken):
        wanted = clicked
    else:
        try:
            wanted = decode(clicked)
        except DecodeError as e:
            logger.debug("Clicked fragment is not a decision token: %s", e)
            return None

    for offset, embed in document.embeds():
        if isinstance(embed, DecisionEmbed) and embed.token == wanted:
            return offset
    return None
