"""Trigger-character detection and palette placement."""

import logging
from dataclasses import dataclass

from editor.richtext import RichText

logger = logging.getLogger(__name__)

USER_SOURCE = "user"


@dataclass(frozen=True)
class Bounds:
    """A rectangle: the caret inside the editor, or the editor on screen."""

    top: float
    left: float
    height: float = 0.0


@dataclass(frozen=True)
class Anchor:
    top: float
    left: float
    above: bool = False


class TriggerDetector:
    """Watches the focused step editor for the trigger character.

    Only one editor is attached at a time; change events from any other
    editor are ignored.
    """

    def __init__(
        self,
        trigger_char: str = "/",
        palette_height: int = 400,
        margin: int = 10,
        gap: int = 5,
    ) -> None:
        if len(trigger_char) != 1:
            raise ValueError("trigger_char must be a single character")
        self.trigger_char = trigger_char
        self.palette_height = palette_height
        self.margin = margin
        self.gap = gap
        self._attached: str | None = None

    @property
    def attached(self) -> str | None:
        return self._attached

    def attach(self, editor_key: str) -> None:
        if self._attached != editor_key:
            logger.debug("Trigger detector attached to %s", editor_key)
        self._attached = editor_key

    def detach(self) -> None:
        self._attached = None

    def is_triggered(self, document: RichText, cursor: int) -> bool:
        return document.char_before(cursor) == self.trigger_char

    def on_change(
        self,
        editor_key: str,
        document: RichText,
        cursor: int,
        caret: Bounds | None = None,
        origin: Bounds | None = None,
        viewport_height: float | None = None,
        source: str = USER_SOURCE,
    ) -> Anchor | None:
        """Anchor for the palette when the change just typed the trigger, else None.

        caret is the cursor rectangle relative to the editor and origin the
        editor container on screen. Without geometry the anchor is (0, 0).
        """
        if editor_key != self._attached or source != USER_SOURCE:
            return None
        if not self.is_triggered(document, cursor):
            return None
        if caret is None:
            return Anchor(top=0, left=0)
        return self.place(caret, origin, viewport_height)

    def place(
        self,
        caret: Bounds,
        origin: Bounds | None = None,
        viewport_height: float | None = None,
    ) -> Anchor:
        """Below the caret when it fits, otherwise above it.

        When there is no room above either, the palette is pinned to the
        bottom of the viewport, never closer than margin to the top.
        """
        base_top = origin.top if origin else 0
        left = (origin.left if origin else 0) + caret.left
        top = base_top + caret.top + caret.height
        if viewport_height is None or top + self.palette_height <= viewport_height:
            return Anchor(top=top, left=left)
        top = base_top + caret.top - self.palette_height - self.gap
        if top < 0:
            top = max(self.margin, viewport_height - self.palette_height - self.margin)
        return Anchor(top=top, left=left, above=True)
