"""Flat markdown event model.

A parsed document is an ordered list of events: block and inline containers
open with :class:`Start` and close with :class:`End`, leaves carry text.
Events are immutable; every consumer works on slices of the same list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class TagKind(str, Enum):
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BLOCK_QUOTE = "block_quote"
    CODE_BLOCK = "code_block"
    HTML_BLOCK = "html_block"
    LIST = "list"
    ITEM = "item"
    FOOTNOTE_DEFINITION = "footnote_definition"
    TABLE = "table"
    TABLE_HEAD = "table_head"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    EMPHASIS = "emphasis"
    STRONG = "strong"
    STRIKETHROUGH = "strikethrough"
    LINK = "link"
    IMAGE = "image"


@dataclass(frozen=True)
class Tag:
    """A container tag and the attributes needed to write it back out."""

    kind: TagKind
    level: int = 0                      # heading level
    start: int | None = None            # ordered list start, None for bullets
    info: str = ""                      # code fence info string
    fenced: bool = True
    dest: str = ""                      # link / image destination
    title: str = ""
    autolink: bool = False
    label: str = ""                     # footnote label
    alignments: tuple[str, ...] = ()    # table column alignments
    widths: tuple[int, ...] = ()        # table column widths as written in the source


@dataclass(frozen=True)
class Start:
    tag: Tag
    #: Zero-based source line of block tags; not part of event identity.
    line: int | None = field(default=None, compare=False)


@dataclass(frozen=True)
class End:
    tag: Tag


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Code:
    text: str


@dataclass(frozen=True)
class Html:
    text: str


@dataclass(frozen=True)
class InlineHtml:
    text: str


@dataclass(frozen=True)
class FootnoteReference:
    label: str


@dataclass(frozen=True)
class SoftBreak:
    pass


@dataclass(frozen=True)
class HardBreak:
    pass


@dataclass(frozen=True)
class Rule:
    pass


@dataclass(frozen=True)
class Other:
    """Token the core does not interpret; written back verbatim."""

    kind: str
    text: str = ""
    block: bool = False


Event = Union[
    Start, End, Text, Code, Html, InlineHtml, FootnoteReference, SoftBreak, HardBreak, Rule, Other
]


# ---------------------------------------------------------------------------
# Constructors / predicates
# ---------------------------------------------------------------------------


def heading(level: int) -> Tag:
    return Tag(TagKind.HEADING, level=level)


def is_heading_start(event: Event, level: int | None = None) -> bool:
    if not isinstance(event, Start) or event.tag.kind is not TagKind.HEADING:
        return False
    return level is None or event.tag.level == level


def is_heading_end(event: Event, level: int | None = None) -> bool:
    if not isinstance(event, End) or event.tag.kind is not TagKind.HEADING:
        return False
    return level is None or event.tag.level == level


def heading_events(level: int, text: str) -> list[Event]:
    """The three events of a plain ``#``-heading."""
    tag = heading(level)
    return [Start(tag), Text(text), End(tag)]
