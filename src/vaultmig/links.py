"""Wiki-links, block identifiers and the anchors links can point at.

Supported link shapes::

    [[target]]   [[target#sublink]]   [[target|title]]   [[target#sublink|title]]

``sublink`` and ``title`` keep their leading ``#`` / ``|``, exactly as they
appear in the link text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence, Union

from vaultmig.errors import LinkSyntaxError, MissingBracketsError, TooManyBarsError, TooManyHashesError
from vaultmig.events import Event, Text
from vaultmig.sections import match_heading

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BlockIdentifier:
    """``^`` followed by letters, digits and hyphens, e.g. ``^spawn-task-1a2b3c``."""

    text: str

    @classmethod
    def parse(cls, text: str) -> "BlockIdentifier | None":
        if not text.startswith("^") or len(text) < 2:
            return None
        if not all(c.isalnum() or c == "-" for c in text[1:]):
            return None
        return cls(text)


@dataclass(frozen=True)
class HeadingAnchor:
    level: int
    text: str


LinkableData = Union[HeadingAnchor, BlockIdentifier]


@dataclass(frozen=True)
class LinkableItem:
    data: LinkableData
    event: Event
    index: int


@dataclass(frozen=True)
class WikiLink:
    text: str
    file_target: str | None = None
    sublink: str | None = None
    title: str | None = None

    @classmethod
    def parse(cls, text: str) -> "WikiLink":
        if not text.startswith("[[") or not text.endswith("]]"):
            raise MissingBracketsError(text)

        inner = text.replace("[[", "").replace("]]", "")

        hashes = inner.count("#")
        if hashes > 1:
            raise TooManyHashesError(hashes, inner)
        bars = inner.count("|")
        if bars > 1:
            raise TooManyBarsError(bars, inner)

        # The title runs to the end of the link, so it is cut first; a '#'
        # inside the title then no longer counts as a sublink.
        bar = inner.find("|")
        title = inner[bar:] if bar >= 0 else None
        rest = inner[:bar] if bar >= 0 else inner

        hash_pos = rest.find("#")
        sublink = rest[hash_pos:] if hash_pos >= 0 else None
        target = rest[:hash_pos] if hash_pos >= 0 else rest

        return cls(text=text, file_target=target or None, sublink=sublink, title=title)

    @property
    def sublink_name(self) -> str | None:
        return self.sublink[1:] if self.sublink else None

    @property
    def title_text(self) -> str | None:
        return self.title[1:] if self.title else None


@dataclass(frozen=True)
class LinkItem:
    """All wiki-links found in one ``Text`` event."""

    links: tuple[WikiLink, ...]
    event: Text
    index: int

    @property
    def text(self) -> str:
        return self.event.text


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def split_wiki_link_tokens(text: str) -> list[str]:
    """Every ``[[...]]`` token of *text*, in order, trailing prose discarded."""
    tokens: list[str] = []
    for piece in text.split("[[")[1:]:
        end = piece.find("]]")
        if end < 0:
            continue
        tokens.append("[[" + piece[: end + 2])
    return tokens


def parse_wiki_links(text: str) -> list[WikiLink]:
    return [WikiLink.parse(token) for token in split_wiki_link_tokens(text)]


def block_identifier_of(text: str) -> BlockIdentifier | None:
    """Trailing block identifier of a text run, if it ends with one."""
    caret = text.rfind("^")
    if caret < 0:
        return None
    return BlockIdentifier.parse(text[caret:])


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_linkables(events: Sequence[Event]) -> list[LinkableItem]:
    """Headings of any level followed by trailing block identifiers."""
    headings: list[LinkableItem] = []
    for index, event in enumerate(events):
        matched = match_heading(events[index : index + 3])
        if matched is not None:
            level, text = matched
            headings.append(LinkableItem(HeadingAnchor(level, text), event, index))

    blocks: list[LinkableItem] = []
    for index, event in enumerate(events):
        if not isinstance(event, Text):
            continue
        identifier = block_identifier_of(event.text)
        if identifier is not None:
            blocks.append(LinkableItem(identifier, event, index))

    return headings + blocks


def extract_links(events: Sequence[Event], *, skip_invalid: bool = False) -> list[LinkItem]:
    """Wiki-links of every ``Text`` event that has at least one.

    A malformed link raises its :class:`LinkSyntaxError` unless
    *skip_invalid* is set, in which case that text run is left out.
    """
    items: list[LinkItem] = []
    for index, event in enumerate(events):
        if not isinstance(event, Text):
            continue
        try:
            links = parse_wiki_links(event.text)
        except LinkSyntaxError as exc:
            if not skip_invalid:
                raise
            logger.warning("Skipping text run %d: %s", index, exc)
            continue
        if links:
            items.append(LinkItem(tuple(links), event, index))
    return items


# ---------------------------------------------------------------------------
# Rewriting
# ---------------------------------------------------------------------------

_WIKI_LINK_RE = re.compile(r"\[\[([^\[\]]+)\]\]")


def redirect_wiki_links(text: str, note: str, sublink: str, new_target: str, *, same_note: bool = False) -> str:
    """Point links at ``note#sublink`` to ``new_target`` instead.

    ``[[note#sublink]]`` becomes ``[[new_target]]`` and a title, if any, is
    kept. With *same_note* the in-note form ``[[#sublink]]`` is rewritten too.
    Links that fail to parse are left alone.
    """

    def _replace(match: re.Match[str]) -> str:
        try:
            link = WikiLink.parse(match.group(0))
        except LinkSyntaxError:
            return match.group(0)
        if link.sublink_name != sublink:
            return match.group(0)
        target = link.file_target
        if not (target == note or (target is None and same_note)):
            return match.group(0)
        return f"[[{new_target}{link.title or ''}]]"

    return _WIKI_LINK_RE.sub(_replace, text)
