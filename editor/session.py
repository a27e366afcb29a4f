"""Editing session for one agent's script steps.

Holds every step document, keeps the trigger detector on the focused step,
and turns palette commits into document edits.
"""

import logging
from pathlib import Path

from core.api.media import MediaStore
from editor.index import locate
from editor.palette import (
    CandidateSource,
    CommandPalette,
    InsertAtTrigger,
    PaletteCommit,
    ReplaceEmbed,
)
from editor.registry import EmbedRegistry
from editor.richtext import DecisionEmbed, MediaEmbed, RichText, TextRun
from editor.tokens import DecodeError, Fragment, decode
from editor.trigger import Anchor, Bounds, TriggerDetector

logger = logging.getLogger(__name__)

SITUATION_TEMPLATE: tuple[TextRun, ...] = (
    TextRun("\n"),
    TextRun("🚩 Situação:", bold=True),
    TextRun(" Digite aqui a situação...\n"),
    TextRun("💬 Mensagem (o que você deve retornar):", bold=True),
    TextRun("\nDigite aqui a mensagem que o agente deve retornar...\n"),
)


class StepEditorSession:
    def __init__(
        self,
        registry: EmbedRegistry,
        source: CandidateSource,
        *,
        current_agent_id: int | None = None,
        detector: TriggerDetector | None = None,
        media_store: MediaStore | None = None,
    ) -> None:
        self.registry = registry
        self.detector = detector or TriggerDetector()
        self.palette = CommandPalette(source, current_agent_id, on_commit=self.apply)
        self._media = media_store
        self._docs: dict[str, RichText] = {}
        self._cursors: dict[str, int] = {}
        self.focused: str | None = None
        self.anchor: Anchor | None = None

    def load(self, editor_key: str, source_html: str) -> RichText:
        doc = RichText.from_html(source_html, self.registry)
        self._docs[editor_key] = doc
        self._cursors[editor_key] = doc.length
        return doc

    def html(self, editor_key: str) -> str:
        return self.document(editor_key).to_html(self.registry)

    def keys(self) -> list[str]:
        return list(self._docs)

    def document(self, editor_key: str | None = None) -> RichText:
        key = editor_key or self.focused
        if key is None or key not in self._docs:
            raise KeyError(f"No document loaded for {key!r}")
        return self._docs[key]

    def cursor(self, editor_key: str | None = None) -> int:
        key = editor_key or self.focused
        return self._cursors.get(key, 0) if key else 0

    def focus(self, editor_key: str, cursor: int | None = None) -> None:
        """Switch steps. The detector follows focus; an open palette is dropped."""
        if editor_key not in self._docs:
            self._docs[editor_key] = RichText()
        if self.focused != editor_key and self.palette.is_open:
            self.palette.close()
        self.focused = editor_key
        if cursor is not None:
            self._cursors[editor_key] = cursor
        self.detector.attach(editor_key)

    def remove(self, editor_key: str) -> None:
        self._docs.pop(editor_key, None)
        self._cursors.pop(editor_key, None)
        if self.focused == editor_key:
            self.focused = None
            self.detector.detach()

    async def change(
        self,
        editor_key: str,
        document: RichText,
        cursor: int,
        caret: Bounds | None = None,
        origin: Bounds | None = None,
        viewport_height: float | None = None,
    ) -> Anchor | None:
        """Record an edit. Opens the palette when the edit typed the trigger character."""
        self._docs[editor_key] = document
        self._cursors[editor_key] = cursor
        anchor = self.detector.on_change(
            editor_key, document, cursor, caret, origin, viewport_height
        )
        if anchor is not None:
            self.anchor = anchor
            await self.palette.open(InsertAtTrigger(editor_key, cursor))
        return anchor

    async def type_text(self, text: str, **geometry) -> Anchor | None:
        """Insert text at the focused step's cursor, as if typed."""
        if self.focused is None:
            raise RuntimeError("No step is focused")
        key = self.focused
        pos = self.cursor(key)
        doc = self.document(key).insert_text(pos, text)
        return await self.change(key, doc, pos + len(text), **geometry)

    async def click_token(
        self, editor_key: str, clicked: Fragment | dict[str, str | None]
    ) -> bool:
        """Reopen the palette to edit a clicked token. False when there is nothing to edit."""
        try:
            token = decode(clicked)
        except DecodeError as e:
            logger.debug("Ignoring click on undecodable token: %s", e)
            return False
        offset = locate(self.document(editor_key), token)
        if offset is None:
            return False
        self.focus(editor_key)
        await self.palette.open(ReplaceEmbed(editor_key, offset), initial_kind=token.kind)
        return True

    def apply(self, commit: PaletteCommit) -> RichText:
        """Splice a committed token into its document."""
        target = commit.target
        key = target.editor_key
        doc = self.document(key)
        embed = DecisionEmbed(commit.token)
        match target:
            case InsertAtTrigger(index=index) if doc.char_before(index) == self.detector.trigger_char:
                doc = doc.delete(index - 1, 1).insert_embed(index - 1, embed)
                cursor = index
            case ReplaceEmbed(offset=offset) if isinstance(doc.embed_at(offset), DecisionEmbed):
                doc = doc.replace_embed(offset, embed)
                cursor = offset + 1
            case _:
                # Stale target: plain insertion at the cursor
                pos = self.cursor(key)
                logger.debug("Palette target %s is stale; inserting at %d", target, pos)
                doc = doc.insert_embed(pos, embed)
                cursor = pos + 1
        self._docs[key] = doc
        self._cursors[key] = cursor
        self.anchor = None
        return doc

    async def upload_media(self, path: Path) -> MediaEmbed:
        """Upload a file and embed it at the focused step's cursor."""
        if self._media is None:
            raise RuntimeError("No media store configured")
        if self.focused is None:
            raise RuntimeError("No step is focused")
        url, mime_type = await self._media.upload_path(path)
        embed = MediaEmbed(url=url, mime_type=mime_type, name=path.name)
        pos = self.cursor()
        self._docs[self.focused] = self.document().insert_embed(pos, embed)
        self._cursors[self.focused] = pos + 1
        return embed

    def insert_situation_template(self) -> RichText:
        if self.focused is None:
            raise RuntimeError("No step is focused")
        pos = self.cursor()
        doc = self.document().insert_runs(pos, SITUATION_TEMPLATE)
        self._docs[self.focused] = doc
        self._cursors[self.focused] = pos + sum(r.length for r in SITUATION_TEMPLATE)
        return doc
