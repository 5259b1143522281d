"""Core Note dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any

from vaultmig.events import Event
from vaultmig.frontmatter import FrontmatterProperty, extract_frontmatter
from vaultmig.legacy import LegacyEntry, legacy_entries
from vaultmig.links import LinkableItem, LinkItem, extract_linkables, extract_links
from vaultmig.sections import StructuralGroup, segment_sections
from vaultmig.spawn import SpawnRelation, infer_spawn_relations


@dataclass
class Note:
    """A single markdown note in the vault and everything derived from its events."""

    path: Path
    content: str
    events: list[Event] = field(default_factory=list, repr=False)
    #: Leave out text runs holding malformed wiki-links instead of failing
    skip_invalid_links: bool = False

    @property
    def slug(self) -> str:
        """Filesystem-stable identifier derived from the filename stem."""
        return self.path.stem

    @cached_property
    def frontmatter(self) -> list[FrontmatterProperty] | None:
        return extract_frontmatter(self.events)

    @cached_property
    def sections(self) -> list[StructuralGroup]:
        return segment_sections(self.events)

    @cached_property
    def legacy_entries(self) -> list[LegacyEntry]:
        return legacy_entries(self.sections)

    @cached_property
    def linkables(self) -> list[LinkableItem]:
        return extract_linkables(self.events)

    @cached_property
    def links(self) -> list[LinkItem]:
        return extract_links(self.events, skip_invalid=self.skip_invalid_links)

    @cached_property
    def spawn_relations(self) -> list[SpawnRelation]:
        return infer_spawn_relations(self.linkables, self.links)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "path": str(self.path),
            "frontmatter": {p.key: p.value.strip() for p in self.frontmatter or []},
            "legacy_entries": [
                {"type": e.entry_type.value, "name": e.entry_name, "events": len(e.events)}
                for e in self.legacy_entries
            ],
            "links": [link.text for item in self.links for link in item.links],
            "spawn_relations": [r.to_dict() for r in self.spawn_relations],
        }
