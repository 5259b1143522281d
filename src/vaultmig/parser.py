"""Markdown tokenizer: markdown-it token tree to the flat event list.

The core only ever sees the output of :func:`parse_markdown`. Adjacent text
runs are merged so that a plain heading is always exactly
``Start(Heading) Text End(Heading)``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.footnote import footnote_plugin

from vaultmig.errors import NoteReadError
from vaultmig.events import (
    Code,
    End,
    Event,
    FootnoteReference,
    HardBreak,
    Html,
    InlineHtml,
    Other,
    Rule,
    SoftBreak,
    Start,
    Tag,
    TagKind,
    Text,
)

if TYPE_CHECKING:
    from vaultmig.note import Note

logger = logging.getLogger(__name__)

# Footnote definitions stay where they were written, referenced or not, and
# Obsidian's inline ^[...] footnotes stay plain text
_MD = (
    MarkdownIt("commonmark")
    .enable(["table", "strikethrough"])
    .use(footnote_plugin, inline=False, move_to_end=False)
)

# markdown-it "<name>_open" / "<name>_close" pairs that map 1:1 onto tags
_CONTAINERS: dict[str, TagKind] = {
    "paragraph": TagKind.PARAGRAPH,
    "blockquote": TagKind.BLOCK_QUOTE,
    "list_item": TagKind.ITEM,
    "thead": TagKind.TABLE_HEAD,
    "th": TagKind.TABLE_CELL,
    "td": TagKind.TABLE_CELL,
    "em": TagKind.EMPHASIS,
    "strong": TagKind.STRONG,
    "s": TagKind.STRIKETHROUGH,
}

# Structural tokens with no event counterpart
_SKIPPED = {"tbody_open", "tbody_close"}

_ALIGN_RE = re.compile(r"text-align:\s*(left|right|center)")
_DELIMITER_CELL_RE = re.compile(r":?-+:?")
_NEWLINE_RE = re.compile(r"\r\n?|\n")


class _EventBuilder:
    def __init__(self, env: dict[str, Any], lines: list[str]) -> None:
        self.env = env
        self.lines = lines
        self.events: list[Event] = []
        self._stack: list[Tag] = []
        self._in_table_head = False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _open(self, tag: Tag, token: Token) -> None:
        self._stack.append(tag)
        line = token.map[0] if token.map else None
        self.events.append(Start(tag, line=line))

    def _close(self) -> None:
        self.events.append(End(self._stack.pop()))

    def _leaf(self, tag: Tag, token: Token, inner: list[Event]) -> None:
        self._open(tag, token)
        self.events.extend(inner)
        self._close()

    @staticmethod
    def _footnote_label(token: Token) -> str:
        return str((token.meta or {}).get("label", ""))

    @staticmethod
    def _table_alignments(tokens: list[Token], start: int) -> tuple[str, ...]:
        alignments: list[str] = []
        for token in tokens[start:]:
            if token.type == "thead_close":
                break
            if token.type == "th_open":
                match = _ALIGN_RE.search(str(token.attrGet("style") or ""))
                alignments.append(match.group(1) if match else "")
        return tuple(alignments)

    def _table_widths(self, token: Token, columns: int) -> tuple[int, ...]:
        """Cell widths of the delimiter row below the header, as the editor padded them."""
        if not token.map or token.map[0] + 1 >= len(self.lines):
            return ()
        cells = _DELIMITER_CELL_RE.findall(self.lines[token.map[0] + 1])
        if len(cells) != columns:
            return ()
        return tuple(len(cell) for cell in cells)

    # ------------------------------------------------------------------
    # Block level
    # ------------------------------------------------------------------

    def feed(self, tokens: list[Token]) -> None:
        for pos, token in enumerate(tokens):
            kind = token.type

            if kind in _SKIPPED:
                continue
            if kind == "inline":
                self.feed_inline(token.children or [])
            elif kind in ("paragraph_open", "paragraph_close") and token.hidden:
                # tight list items carry their text without a paragraph
                continue
            elif kind == "heading_open":
                self._open(Tag(TagKind.HEADING, level=int(token.tag[1:])), token)
            elif kind == "bullet_list_open":
                self._open(Tag(TagKind.LIST), token)
            elif kind == "ordered_list_open":
                self._open(Tag(TagKind.LIST, start=int(token.attrGet("start") or 1)), token)
            elif kind == "table_open":
                alignments = self._table_alignments(tokens, pos)
                widths = self._table_widths(token, len(alignments))
                self._open(Tag(TagKind.TABLE, alignments=alignments, widths=widths), token)
            elif kind == "thead_open":
                self._in_table_head = True
                self._open(Tag(TagKind.TABLE_HEAD), token)
            elif kind == "thead_close":
                self._in_table_head = False
                self._close()
            elif kind in ("tr_open", "tr_close"):
                if self._in_table_head:
                    continue
                if token.nesting == 1:
                    self._open(Tag(TagKind.TABLE_ROW), token)
                else:
                    self._close()
            elif kind == "footnote_reference_open":
                self._open(Tag(TagKind.FOOTNOTE_DEFINITION, label=self._footnote_label(token)), token)
            elif kind == "fence":
                inner = [Text(token.content)] if token.content else []
                self._leaf(Tag(TagKind.CODE_BLOCK, info=token.info.strip()), token, inner)
            elif kind == "code_block":
                inner = [Text(token.content)] if token.content else []
                self._leaf(Tag(TagKind.CODE_BLOCK, fenced=False), token, inner)
            elif kind == "html_block":
                self._leaf(Tag(TagKind.HTML_BLOCK), token, [Html(token.content)])
            elif kind == "hr":
                self.events.append(Rule())
            elif kind.endswith("_open") and kind[: -len("_open")] in _CONTAINERS:
                self._open(Tag(_CONTAINERS[kind[: -len("_open")]]), token)
            elif kind.endswith("_close"):
                self._close()
            else:
                self.events.append(Other(kind, token.content, block=True))

    # ------------------------------------------------------------------
    # Inline level
    # ------------------------------------------------------------------

    def feed_inline(self, children: list[Token]) -> None:
        for token in children:
            kind = token.type

            if kind in ("text", "text_special"):
                if token.content:
                    self.events.append(Text(token.content))
            elif kind == "code_inline":
                self.events.append(Code(token.content))
            elif kind == "softbreak":
                self.events.append(SoftBreak())
            elif kind == "hardbreak":
                self.events.append(HardBreak())
            elif kind == "html_inline":
                self.events.append(InlineHtml(token.content))
            elif kind == "footnote_ref":
                self.events.append(FootnoteReference(self._footnote_label(token)))
            elif kind == "link_open":
                tag = Tag(
                    TagKind.LINK,
                    dest=str(token.attrGet("href") or ""),
                    title=str(token.attrGet("title") or ""),
                    autolink=token.markup == "autolink",
                )
                self._open(tag, token)
            elif kind == "link_close":
                self._close()
            elif kind == "image":
                tag = Tag(
                    TagKind.IMAGE,
                    dest=str(token.attrGet("src") or ""),
                    title=str(token.attrGet("title") or ""),
                )
                self._open(tag, token)
                self.feed_inline(token.children or [])
                self._close()
            elif kind in _SKIPPED:
                continue
            elif kind.endswith("_open") and kind[: -len("_open")] in _CONTAINERS:
                self._open(Tag(_CONTAINERS[kind[: -len("_open")]]), token)
            elif kind.endswith("_close") and kind[: -len("_close")] in _CONTAINERS:
                self._close()
            else:
                self.events.append(Other(kind, token.content))


def merge_text(events: list[Event]) -> list[Event]:
    """Coalesce runs of adjacent :class:`Text` events into one."""
    merged: list[Event] = []
    for event in events:
        if isinstance(event, Text) and merged and isinstance(merged[-1], Text):
            merged[-1] = Text(merged[-1].text + event.text)
        else:
            merged.append(event)
    return merged


def parse_markdown(content: str) -> list[Event]:
    """Tokenize *content* into the flat, text-merged event list."""
    env: dict[str, Any] = {}
    builder = _EventBuilder(env, _NEWLINE_RE.split(content))
    builder.feed(_MD.parse(content, env))
    events = merge_text(builder.events)
    logger.debug("Parsed %d events", len(events))
    return events


def read_note_text(path: Path) -> str:
    """The UTF-8 text of *path*; unreadable files raise :class:`NoteReadError`."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise NoteReadError(path, exc) from exc


def parse_note(path: Path, *, skip_invalid_links: bool = False) -> "Note":
    """Read a ``.md`` file and return its parsed :class:`Note`."""
    from vaultmig.note import Note

    content = read_note_text(path)
    return Note(
        path=path,
        content=content,
        events=parse_markdown(content),
        skip_invalid_links=skip_invalid_links,
    )
