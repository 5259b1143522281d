"""Event list back to markdown text.

The writer keeps one fixed house style (``-`` bullets, renumbered ordered
lists, ``*`` / ``**`` emphasis, triple-backtick fences) and does not try to
remember how the source spelled things, except for table column widths which
the parser takes from the delimiter row. Whatever else the editor would have
kept is restored afterwards by :mod:`vaultmig.patch`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence

from rich.cells import cell_len

from vaultmig.errors import RenderError
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

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderOptions:
    newlines_after_headline: int = 2
    newlines_after_paragraph: int = 2
    newlines_after_codeblock: int = 2
    newlines_after_htmlblock: int = 1
    newlines_after_table: int = 2
    newlines_after_rule: int = 2
    newlines_after_list: int = 2
    newlines_after_blockquote: int = 2
    newlines_after_rest: int = 1
    list_token: str = "-"
    ordered_list_token: str = "."
    increment_ordered_list_bullets: bool = True
    emphasis_token: str = "*"
    strong_token: str = "**"
    code_block_token: str = "`"
    code_block_token_count: int = 3


OBSIDIAN_STYLE = RenderOptions()

_BACKTICK_RUN = re.compile(r"`+")


def _longest_run(text: str) -> int:
    return max((len(m.group(0)) for m in _BACKTICK_RUN.finditer(text)), default=0)


def cell_width(text: str) -> int:
    """Columns *text* takes up in an Obsidian table.

    Wide characters take two columns, anything else its UTF-16 length, so an
    emoji followed by a variation selector takes three.
    """
    return sum(2 if cell_len(char) == 2 else len(char.encode("utf-16-le")) // 2 for char in text)


def _pad(text: str, width: int, align: str) -> str:
    gap = width - cell_width(text)
    if align == "right":
        return " " * gap + text
    if align == "center":
        return " " * (gap // 2) + text + " " * (gap - gap // 2)
    return text + " " * gap


@dataclass
class _Table:
    alignments: tuple[str, ...]
    rows: list[list[str]]
    #: minimum column widths, from the source delimiter row
    source_widths: tuple[int, ...] = ()
    row: list[str] | None = None
    cell: list[str] | None = None

    def lines(self) -> list[str]:
        columns = max([len(self.alignments)] + [len(r) for r in self.rows])
        rows = [r + [""] * (columns - len(r)) for r in self.rows]
        minimum = list(self.source_widths) + [0] * (columns - len(self.source_widths))
        widths = [max([3, minimum[i]] + [cell_width(r[i]) for r in rows]) for i in range(columns)]
        aligns = list(self.alignments) + [""] * (columns - len(self.alignments))

        def fmt(cells: list[str]) -> str:
            return "| " + " | ".join(_pad(*cell) for cell in zip(cells, widths, aligns)) + " |"

        def delimiter(width: int, align: str) -> str:
            if align == "left":
                return ":" + "-" * (width - 1)
            if align == "right":
                return "-" * (width - 1) + ":"
            if align == "center":
                return ":" + "-" * (width - 2) + ":"
            return "-" * width

        lines = [fmt(rows[0])] if rows else [fmt([""] * columns)]
        lines.append("| " + " | ".join(delimiter(w, a) for w, a in zip(widths, aligns)) + " |")
        lines.extend(fmt(r) for r in rows[1:])
        return lines


class _Writer:
    def __init__(self, options: RenderOptions) -> None:
        self.options = options
        self.out: list[str] = []
        self.padding: list[str] = []
        self.pending = 0
        self.at_line_start = True
        # set right after a list marker or similar: the next block continues that line
        self.fresh = False
        self.tags: list[Tag] = []
        self.list_numbers: list[int | None] = []
        self.table: _Table | None = None
        self.code: list[str] | None = None

    # ------------------------------------------------------------------
    # Output primitives
    # ------------------------------------------------------------------

    def _write(self, text: str) -> None:
        if self.table is not None and self.table.cell is not None:
            self.table.cell.append(text.replace("|", "\\|").replace("\n", " "))
            return

        prefix = "".join(self.padding)
        lines = text.split("\n")
        for i, line in enumerate(lines):
            if i > 0:
                self.out.append("\n")
                self.at_line_start = True
            if line:
                if self.at_line_start:
                    self.out.append(prefix)
                self.out.append(line)
                self.at_line_start = False
            elif self.at_line_start and i < len(lines) - 1:
                self.out.append(prefix.rstrip())
        self.fresh = False

    def _start_block(self) -> None:
        if self.fresh:
            self.fresh = False
            return
        if not self.out:
            return
        count = max(self.pending, 0 if self.at_line_start else 1)
        blank = "".join(self.padding).rstrip()
        for _ in range(count):
            if self.at_line_start:
                self.out.append(blank)
            self.out.append("\n")
            self.at_line_start = True
        self.pending = 0

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def start(self, tag: Tag) -> None:
        self.tags.append(tag)
        kind = tag.kind
        opts = self.options

        if kind is TagKind.PARAGRAPH:
            self._start_block()
        elif kind is TagKind.HEADING:
            self._start_block()
            self._write("#" * tag.level + " ")
        elif kind is TagKind.BLOCK_QUOTE:
            self._start_block()
            if not self.at_line_start:
                self._write("> ")
                self.fresh = True
            self.padding.append("> ")
        elif kind is TagKind.CODE_BLOCK:
            self._start_block()
            self.code = []
        elif kind is TagKind.HTML_BLOCK:
            self._start_block()
        elif kind is TagKind.LIST:
            self.list_numbers.append(tag.start)
        elif kind is TagKind.ITEM:
            self._start_block()
            number = self.list_numbers[-1] if self.list_numbers else None
            if number is None:
                marker = opts.list_token + " "
            else:
                marker = f"{number}{opts.ordered_list_token} "
                if opts.increment_ordered_list_bullets:
                    self.list_numbers[-1] = number + 1
            self._write(marker)
            self.padding.append(" " * len(marker))
            self.fresh = True
        elif kind is TagKind.FOOTNOTE_DEFINITION:
            self._start_block()
            self._write(f"[^{tag.label}]: ")
            self.padding.append("    ")
            self.fresh = True
        elif kind is TagKind.TABLE:
            self._start_block()
            self.table = _Table(tag.alignments, [], tag.widths)
        elif kind in (TagKind.TABLE_HEAD, TagKind.TABLE_ROW):
            self._table().row = []
        elif kind is TagKind.TABLE_CELL:
            self._table().cell = []
        elif kind is TagKind.EMPHASIS:
            self._write(opts.emphasis_token)
        elif kind is TagKind.STRONG:
            self._write(opts.strong_token)
        elif kind is TagKind.STRIKETHROUGH:
            self._write("~~")
        elif kind is TagKind.LINK:
            self._write("<" if tag.autolink else "[")
        elif kind is TagKind.IMAGE:
            self._write("![")

    def end(self, tag: Tag) -> None:
        if not self.tags:
            raise RenderError(f"End of {tag.kind.value} without a matching start")
        opened = self.tags.pop()
        if opened.kind is not tag.kind:
            raise RenderError(f"End of {tag.kind.value} while {opened.kind.value} is open")

        kind = tag.kind
        opts = self.options

        if kind is TagKind.PARAGRAPH:
            self.pending = opts.newlines_after_paragraph
        elif kind is TagKind.HEADING:
            self.pending = opts.newlines_after_headline
        elif kind is TagKind.BLOCK_QUOTE:
            self.padding.pop()
            self.fresh = False
            self.pending = opts.newlines_after_blockquote
        elif kind is TagKind.CODE_BLOCK:
            self._write_code_block(opened)
            self.pending = opts.newlines_after_codeblock
        elif kind is TagKind.HTML_BLOCK:
            self.pending = opts.newlines_after_htmlblock
        elif kind is TagKind.LIST:
            self.list_numbers.pop()
            if self.list_numbers:
                self.pending = max(self.pending, opts.newlines_after_rest)
            else:
                self.pending = opts.newlines_after_list
        elif kind is TagKind.ITEM:
            self.padding.pop()
            self.fresh = False
            self.pending = max(self.pending, opts.newlines_after_rest)
        elif kind is TagKind.FOOTNOTE_DEFINITION:
            self.padding.pop()
            self.fresh = False
            self.pending = max(self.pending, opts.newlines_after_rest)
        elif kind is TagKind.TABLE:
            table = self._table()
            self.table = None
            self._write("\n".join(table.lines()))
            self.pending = opts.newlines_after_table
        elif kind in (TagKind.TABLE_HEAD, TagKind.TABLE_ROW):
            table = self._table()
            table.rows.append(table.row or [])
            table.row = None
        elif kind is TagKind.TABLE_CELL:
            table = self._table()
            if table.row is None:
                raise RenderError("Table cell outside of a row")
            table.row.append("".join(table.cell or []).strip())
            table.cell = None
        elif kind is TagKind.EMPHASIS:
            self._write(opts.emphasis_token)
        elif kind is TagKind.STRONG:
            self._write(opts.strong_token)
        elif kind is TagKind.STRIKETHROUGH:
            self._write("~~")
        elif kind in (TagKind.LINK, TagKind.IMAGE):
            if tag.autolink:
                self._write(">")
                return
            dest = f"<{tag.dest}>" if " " in tag.dest else tag.dest
            if tag.title:
                title = tag.title.replace('"', '\\"')
                self._write(f']({dest} "{title}")')
            else:
                self._write(f"]({dest})")

    def _table(self) -> _Table:
        if self.table is None:
            raise RenderError("Table content outside of a table")
        return self.table

    def _write_code_block(self, tag: Tag) -> None:
        body = "".join(self.code or [])
        self.code = None
        count = max(self.options.code_block_token_count, _longest_run(body) + 1)
        fence = self.options.code_block_token * count
        if body and not body.endswith("\n"):
            body += "\n"
        self._write(fence + tag.info + "\n" + body + fence)

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def leaf(self, event: Event) -> None:
        if isinstance(event, Text):
            if self.code is not None:
                self.code.append(event.text)
            else:
                self._write(event.text)
        elif isinstance(event, Code):
            self._write(_code_span(event.text))
        elif isinstance(event, (Html, InlineHtml)):
            self._write(event.text)
        elif isinstance(event, FootnoteReference):
            self._write(f"[^{event.label}]")
        elif isinstance(event, SoftBreak):
            self._write("\n")
        elif isinstance(event, HardBreak):
            self._write("  \n")
        elif isinstance(event, Rule):
            self._start_block()
            self._write("---")
            self.pending = self.options.newlines_after_rule
        elif isinstance(event, Other):
            if event.block:
                self._start_block()
                self._write(event.text)
                self.pending = self.options.newlines_after_rest
            else:
                self._write(event.text)
        else:
            raise RenderError(f"Cannot render event {event!r}")

    def finish(self) -> str:
        if self.tags:
            raise RenderError(f"Unclosed {self.tags[-1].kind.value} at end of document")
        return "".join(self.out)


def _code_span(text: str) -> str:
    ticks = "`" * (_longest_run(text) + 1)
    if text.startswith("`") or text.endswith("`") or (
        text.startswith(" ") and text.endswith(" ") and text.strip()
    ):
        text = f" {text} "
    return f"{ticks}{text}{ticks}"


def render_events(events: Sequence[Event], options: RenderOptions = OBSIDIAN_STYLE) -> str:
    """Serialize *events* to markdown.

    Raises :class:`RenderError` when a tag is closed that is not open, or
    left open at the end.
    """
    writer = _Writer(options)
    for event in events:
        if isinstance(event, Start):
            writer.start(event.tag)
        elif isinstance(event, End):
            writer.end(event.tag)
        else:
            writer.leaf(event)
    text = writer.finish()
    logger.debug("Rendered %d events to %d characters", len(events), len(text))
    return text
