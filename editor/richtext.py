"""Linear rich-text model for script steps, FAQ answers and rules.

A document is an ordered tuple of runs. Text runs count one unit per
character; embeds (decision tokens, media) count exactly one unit and are
atomic: they are never split and a delete touching one removes it whole.
Newlines inside text terminate paragraphs.
"""

import html
import logging
from collections.abc import Iterator
from dataclasses import dataclass, replace
from html.parser import HTMLParser
from typing import TYPE_CHECKING, Union

from editor.tokens import DecisionToken, DecodeError

if TYPE_CHECKING:
    from editor.registry import EmbedRegistry

logger = logging.getLogger(__name__)

_BLOCK_TAGS = frozenset({"p", "div", "li", "ul", "ol", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"})
_VOID_TAGS = frozenset({"br", "img", "hr", "input", "meta", "link", "source", "wbr"})
_STYLE_TAGS = {"strong": "bold", "b": "bold", "em": "italic", "i": "italic", "u": "underline"}


@dataclass(frozen=True)
class TextRun:
    text: str
    bold: bool = False
    italic: bool = False
    underline: bool = False

    @property
    def length(self) -> int:
        return len(self.text)

    def same_style(self, other: "TextRun") -> bool:
        return (self.bold, self.italic, self.underline) == (
            other.bold,
            other.italic,
            other.underline,
        )


@dataclass(frozen=True)
class DecisionEmbed:
    token: DecisionToken

    @property
    def length(self) -> int:
        return 1


@dataclass(frozen=True)
class MediaEmbed:
    url: str
    mime_type: str
    name: str = ""

    @property
    def length(self) -> int:
        return 1


Embed = Union[DecisionEmbed, MediaEmbed]
Run = Union[TextRun, DecisionEmbed, MediaEmbed]


def _normalize(runs: tuple[Run, ...]) -> tuple[Run, ...]:
    """Drop empty text runs and merge adjacent text runs with the same style."""
    out: list[Run] = []
    for run in runs:
        if isinstance(run, TextRun):
            if not run.text:
                continue
            prev = out[-1] if out else None
            if isinstance(prev, TextRun) and prev.same_style(run):
                out[-1] = replace(prev, text=prev.text + run.text)
                continue
        out.append(run)
    return tuple(out)


@dataclass(frozen=True)
class RichText:
    """Immutable document. Every edit returns a new instance."""

    runs: tuple[Run, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "runs", _normalize(tuple(self.runs)))

    @classmethod
    def from_text(cls, text: str) -> "RichText":
        return cls((TextRun(text),))

    @property
    def length(self) -> int:
        return sum(run.length for run in self.runs)

    def is_empty(self) -> bool:
        return not self.plain_text().strip() and not any(
            not isinstance(r, TextRun) for r in self.runs
        )

    def plain_text(self) -> str:
        """Text content only; embeds contribute nothing."""
        return "".join(r.text for r in self.runs if isinstance(r, TextRun))

    def embeds(self) -> Iterator[tuple[int, Embed]]:
        """Yield (offset, embed) for every embed in document order."""
        offset = 0
        for run in self.runs:
            if not isinstance(run, TextRun):
                yield offset, run
            offset += run.length

    def embed_at(self, index: int) -> Embed | None:
        for offset, embed in self.embeds():
            if offset == index:
                return embed
            if offset > index:
                break
        return None

    def char_before(self, index: int) -> str:
        """The character immediately before index, or "" at an embed or the start."""
        if index <= 0:
            return ""
        offset = 0
        for run in self.runs:
            end = offset + run.length
            if offset < index <= end:
                if isinstance(run, TextRun):
                    return run.text[index - offset - 1]
                return ""
            offset = end
        return ""

    def _clamp(self, index: int) -> int:
        return max(0, min(index, self.length))

    def _split(self, index: int) -> tuple[tuple[Run, ...], tuple[Run, ...]]:
        index = self._clamp(index)
        left: list[Run] = []
        right: list[Run] = []
        offset = 0
        for run in self.runs:
            end = offset + run.length
            if end <= index:
                left.append(run)
            elif offset >= index:
                right.append(run)
            else:
                # Only text runs can straddle a position; embeds have length 1
                cut = index - offset
                left.append(replace(run, text=run.text[:cut]))
                right.append(replace(run, text=run.text[cut:]))
            offset = end
        return tuple(left), tuple(right)

    def insert_text(
        self,
        index: int,
        text: str,
        *,
        bold: bool = False,
        italic: bool = False,
        underline: bool = False,
    ) -> "RichText":
        left, right = self._split(index)
        run = TextRun(text, bold=bold, italic=italic, underline=underline)
        return RichText(left + (run,) + right)

    def insert_runs(self, index: int, runs: tuple[Run, ...]) -> "RichText":
        left, right = self._split(index)
        return RichText(left + tuple(runs) + right)

    def insert_embed(self, index: int, embed: Embed) -> "RichText":
        return self.insert_runs(index, (embed,))

    def delete(self, index: int, length: int) -> "RichText":
        if length <= 0:
            return self
        left, _ = self._split(index)
        _, right = self._split(index + length)
        return RichText(left + right)

    def replace_embed(self, index: int, embed: Embed) -> "RichText":
        """Swap the embed at index for another. Raises ValueError if none is there."""
        if self.embed_at(index) is None:
            raise ValueError(f"No embed at offset {index}")
        return self.delete(index, 1).insert_embed(index, embed)

    def to_html(self, registry: "EmbedRegistry") -> str:
        return _HtmlWriter(registry).write(self)

    @classmethod
    def from_html(cls, source: str, registry: "EmbedRegistry") -> "RichText":
        reader = _HtmlReader(registry)
        reader.feed(source or "")
        reader.close()
        return cls(tuple(reader.runs))


class _HtmlWriter:
    """Serialize runs as Quill-style paragraphs. Block embeds get their own line."""

    def __init__(self, registry: "EmbedRegistry") -> None:
        self._registry = registry
        self._out: list[str] = []
        self._line: list[str] = []

    def _close_line(self, force: bool) -> None:
        if self._line:
            self._out.append("<p>" + "".join(self._line) + "</p>")
        elif force:
            self._out.append("<p><br></p>")
        self._line = []

    def write(self, doc: RichText) -> str:
        for run in doc.runs:
            if isinstance(run, TextRun):
                parts = run.text.split("\n")
                for i, part in enumerate(parts):
                    if i > 0:
                        self._close_line(force=True)
                    if part:
                        self._line.append(_styled(run, html.escape(part, quote=False)))
                continue
            codec = self._registry.codec_for_embed(run)
            if codec.block:
                self._close_line(force=False)
                self._out.append(codec.write(run))
            else:
                self._line.append(codec.write(run))
        self._close_line(force=False)
        return "".join(self._out)


def _styled(run: TextRun, text: str) -> str:
    if run.underline:
        text = f"<u>{text}</u>"
    if run.italic:
        text = f"<em>{text}</em>"
    if run.bold:
        text = f"<strong>{text}</strong>"
    return text


class _HtmlReader(HTMLParser):
    """Rebuild runs from stored HTML. Unknown tags contribute their text only."""

    def __init__(self, registry: "EmbedRegistry") -> None:
        super().__init__(convert_charrefs=True)
        self._registry = registry
        self.runs: list[Run] = []
        self._style = {"bold": 0, "italic": 0, "underline": 0}
        # One entry per open block: whether it contained a nested block
        self._blocks: list[bool] = []
        self._line_has_content = False
        self._pending_break = False
        # Embed capture: (codec, tag, attrs, depth, collected text)
        self._capture: list | None = None

    def _emit(self, run: Run) -> None:
        if self._pending_break:
            self.runs.append(TextRun("\n"))
            self._pending_break = False
        self.runs.append(run)
        self._line_has_content = True

    def _newline(self) -> None:
        self.runs.append(TextRun("\n"))
        self._line_has_content = False
        self._pending_break = False

    def handle_starttag(self, tag: str, attrs_list: list[tuple[str, str | None]]) -> None:
        attrs = {k: (v or "") for k, v in attrs_list}
        if self._capture is not None:
            if tag not in _VOID_TAGS:
                self._capture[3] += 1
            return

        codec = self._registry.codec_for_element(tag, attrs)
        if codec is not None:
            if codec.block and self._line_has_content:
                self._newline()
            self._capture = [codec, tag, attrs, 1, []]
            return

        if tag in _STYLE_TAGS:
            self._style[_STYLE_TAGS[tag]] += 1
        elif tag == "br":
            if self._line_has_content:
                self._pending_break = True
        elif tag in _BLOCK_TAGS:
            if self._blocks:
                self._blocks[-1] = True
            if self._line_has_content:
                self._newline()
            self._blocks.append(False)

    def handle_startendtag(self, tag: str, attrs_list: list[tuple[str, str | None]]) -> None:
        self.handle_starttag(tag, attrs_list)
        if tag not in _VOID_TAGS:
            self.handle_endtag(tag)

    def handle_endtag(self, tag: str) -> None:
        if self._capture is not None:
            self._capture[3] -= 1
            if self._capture[3] == 0:
                self._finish_capture()
            return

        if tag in _STYLE_TAGS:
            key = _STYLE_TAGS[tag]
            self._style[key] = max(0, self._style[key] - 1)
        elif tag in _BLOCK_TAGS and self._blocks:
            had_child_block = self._blocks.pop()
            self._pending_break = False
            if not had_child_block or self._line_has_content:
                self._newline()

    def handle_data(self, data: str) -> None:
        if self._capture is not None:
            self._capture[4].append(data)
            return
        if not self._blocks and not data.strip():
            return
        self._emit(
            TextRun(
                data,
                bold=self._style["bold"] > 0,
                italic=self._style["italic"] > 0,
                underline=self._style["underline"] > 0,
            )
        )

    def _finish_capture(self) -> None:
        codec, tag, attrs, _, chunks = self._capture
        self._capture = None
        text = "".join(chunks)
        try:
            embed = codec.read(tag, attrs, text)
        except DecodeError as e:
            # Undecodable token: keep its visible text as plain content
            logger.debug("Dropping undecodable %s embed: %s", codec.blot_name, e)
            if text:
                self._emit(TextRun(text))
            return
        if codec.block:
            self.runs.append(embed)
            self._line_has_content = False
            self._pending_break = False
        else:
            self._emit(embed)
