"""Legacy journal entries: ``# Tasks`` / ``## Some task`` / content."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from vaultmig.conventions import (
    CONTEXT_TYPE_FOLDERS,
    CONTEXT_TYPE_HEADINGS_SINGULAR,
    LEGACY_HEADINGS,
)
from vaultmig.errors import LegacyNotConfiguredError, UnknownLegacyLabelError
from vaultmig.events import Event
from vaultmig.sections import GroupKind, StructuralGroup, segment_sections

logger = logging.getLogger(__name__)


class LegacyEntryType(str, Enum):
    TASK = "Tasks"
    ISSUE = "Issues"
    HOWTO = "HowTos"
    INVESTIGATION = "Investigations"
    IDEA = "Ideas"
    SIDE_NOTE = "Side Notes"

    @classmethod
    def from_label(cls, label: str) -> "LegacyEntryType":
        try:
            return cls(label)
        except ValueError:
            raise UnknownLegacyLabelError(label) from None

    @property
    def context_index(self) -> int:
        """Index into the context-type tables; side notes become plain entries."""
        return CONTEXT_TYPE_FOLDERS.index(_CATEGORY_FOLDERS[self])

    @property
    def category_folder(self) -> str:
        return _CATEGORY_FOLDERS[self]

    @property
    def context_type(self) -> str:
        return CONTEXT_TYPE_HEADINGS_SINGULAR[self.context_index].lower()


_CATEGORY_FOLDERS: dict[LegacyEntryType, str] = {
    LegacyEntryType.TASK: "tasks",
    LegacyEntryType.ISSUE: "issues",
    LegacyEntryType.HOWTO: "howtos",
    LegacyEntryType.INVESTIGATION: "investigations",
    LegacyEntryType.IDEA: "ideas",
    LegacyEntryType.SIDE_NOTE: "entries",
}


@dataclass(frozen=True)
class LegacyEntry:
    entry_type: LegacyEntryType
    entry_name: str
    events: tuple[Event, ...]
    #: ``[start, stop)`` of the content in the source event list
    span: tuple[int, int] = (0, 0)


def strip_auto_number(text: str) -> str:
    """Drop a leading ``1`` / ``2.1.3`` style section number from *text*.

    A heading made of nothing but a number is returned unchanged.
    """
    parts = text.split(maxsplit=1)
    if len(parts) < 2:
        return text
    number, rest = parts
    if all(seg.isascii() and seg.isdigit() for seg in number.split(".")):
        return rest
    return text


def legacy_label(text: str) -> str:
    return strip_auto_number(text).strip()


def is_legacy_heading(text: str) -> bool:
    return legacy_label(text) in LEGACY_HEADINGS


def retain_legacy_groups(groups: Sequence[StructuralGroup]) -> list[StructuralGroup]:
    """Keep only the groups inside H1 sections with a legacy label."""
    retained: list[StructuralGroup] = []
    keep = False
    for group in groups:
        if group.kind is GroupKind.HEADING1:
            keep = is_legacy_heading(group.text)
        if keep:
            retained.append(group)
    return retained


def legacy_entries(groups: Sequence[StructuralGroup]) -> list[LegacyEntry]:
    """Pair every content group under a legacy H1 with its type and H2 name.

    Fails as a whole with :class:`LegacyNotConfiguredError` when content is
    reached before both the type and the name are known.
    """
    entries: list[LegacyEntry] = []
    entry_type: LegacyEntryType | None = None
    entry_name: str | None = None

    for group in retain_legacy_groups(groups):
        if group.kind is GroupKind.HEADING1:
            entry_type = LegacyEntryType.from_label(legacy_label(group.text))
        elif group.kind is GroupKind.HEADING2:
            entry_name = group.text.strip()
        else:
            if entry_type is None:
                raise LegacyNotConfiguredError("type", group.start)
            if entry_name is None:
                raise LegacyNotConfiguredError("name", group.start)
            entries.append(
                LegacyEntry(entry_type, entry_name, tuple(group.events), (group.start, group.stop))
            )

    logger.debug("Found %d legacy entries", len(entries))
    return entries


def extract_legacy_entries(events: Sequence[Event]) -> list[LegacyEntry]:
    return legacy_entries(segment_sections(events))
