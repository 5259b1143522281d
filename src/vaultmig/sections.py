"""Heading matchers and the H1/H2 section segmenter."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from vaultmig.errors import EmptyContentRunError, HeadingPatternError, UnbalancedHeadingError
from vaultmig.events import End, Event, Start, TagKind, Text, is_heading_start

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Heading matchers
# ---------------------------------------------------------------------------


def heading_text_of_level(level: int, events: Sequence[Event]) -> str:
    """Text of a ``Start(H<level>) Text End(H<level>)`` triple at ``events[0]``.

    Raises :class:`HeadingPatternError` when the events do not form that
    pattern and :class:`UnbalancedHeadingError` when they do but the closing
    level differs, which no well-formed stream contains.
    """
    if len(events) < 3:
        raise HeadingPatternError("Heading events come in 3, and there aren't enough events")

    first, second, third = events[0], events[1], events[2]
    if not isinstance(first, Start):
        raise HeadingPatternError(f"Expected a heading start at offset 0 but got {first!r}")
    if first.tag.kind is not TagKind.HEADING:
        raise HeadingPatternError(f"Expected a heading start tag but got {first.tag.kind.value}")
    if first.tag.level != level:
        raise HeadingPatternError(f"Expected heading level {level} but got {first.tag.level}")
    if not isinstance(second, Text):
        raise HeadingPatternError(f"Expected heading text at offset 1 but got {second!r}")
    if not isinstance(third, End):
        raise HeadingPatternError(f"Expected a heading end at offset 2 but got {third!r}")
    if third.tag.kind is not TagKind.HEADING:
        raise HeadingPatternError(f"Expected a heading end tag but got {third.tag.kind.value}")
    if third.tag.level != level:
        raise UnbalancedHeadingError(level, third.tag.level)
    return second.text


def match_heading(events: Sequence[Event]) -> tuple[int, str] | None:
    """``(level, text)`` of a plain heading of any level at ``events[0]``."""
    if not events or not is_heading_start(events[0]):
        return None
    level = events[0].tag.level
    try:
        return level, heading_text_of_level(level, events)
    except HeadingPatternError:
        return None


def _try_heading(level: int, events: Sequence[Event]) -> str | None:
    try:
        return heading_text_of_level(level, events)
    except HeadingPatternError:
        return None


# ---------------------------------------------------------------------------
# Segmenter
# ---------------------------------------------------------------------------


class GroupKind(str, Enum):
    HEADING1 = "heading1"
    HEADING2 = "heading2"
    CONTENT = "content"


@dataclass(frozen=True)
class StructuralGroup:
    """A contiguous ``[start, stop)`` view over the document's event list."""

    kind: GroupKind
    start: int
    stop: int
    text: str = ""
    source: Sequence[Event] = field(default=(), repr=False, compare=False)

    @property
    def events(self) -> list[Event]:
        return list(self.source[self.start : self.stop])

    def __len__(self) -> int:
        return self.stop - self.start


def _starts_section(event: Event) -> bool:
    return is_heading_start(event, 1) or is_heading_start(event, 2)


def segment_sections(events: Sequence[Event]) -> list[StructuralGroup]:
    """Partition *events* into H1 / H2 headings and the content between them.

    Material before the first H1/H2 is skipped. Everything below H2, deeper
    headings included, belongs to the surrounding content group.
    """
    groups: list[StructuralGroup] = []
    pos = 0
    total = len(events)

    while pos < total:
        window = events[pos : pos + 3]

        text = _try_heading(1, window)
        if text is not None:
            groups.append(StructuralGroup(GroupKind.HEADING1, pos, pos + 3, text, events))
            pos += 3
            continue

        text = _try_heading(2, window)
        if text is not None:
            groups.append(StructuralGroup(GroupKind.HEADING2, pos, pos + 3, text, events))
            pos += 3
            continue

        if not groups:
            pos += 1
            continue

        stop = pos
        while stop < total and not _starts_section(events[stop]):
            stop += 1
        if stop == pos:
            raise EmptyContentRunError(pos)
        groups.append(StructuralGroup(GroupKind.CONTENT, pos, stop, source=events))
        pos = stop

    logger.debug("Segmented %d events into %d groups", total, len(groups))
    return groups
