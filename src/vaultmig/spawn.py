"""Spawn relations between notes.

A note that spawns another carries the line::

    Spawn [[Other Note]] ^spawn-task-1a2b3c

and the spawned note answers with::

    From [[Origin#^spawn-task-1a2b3c|spawn]] in [[Origin]]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from vaultmig.events import Text
from vaultmig.links import BlockIdentifier, LinkableItem, LinkItem, WikiLink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpawnRelation:
    event: Text
    note_link: WikiLink
    block_identifier: BlockIdentifier
    #: position of ``event`` in the scanned event list
    index: int = -1

    def to_dict(self) -> dict:
        return {
            "relation": type(self).__name__.lower(),
            "note": self.note_link.file_target,
            "block_identifier": self.block_identifier.text,
            "text": self.event.text,
        }


@dataclass(frozen=True)
class Spawning(SpawnRelation):
    """This note created ``note_link``."""


@dataclass(frozen=True)
class Spawned(SpawnRelation):
    """This note was created from ``note_link``."""


def _spawning(linkable: LinkableItem, item: LinkItem) -> Spawning | None:
    identifier = linkable.data
    if not isinstance(identifier, BlockIdentifier) or not identifier.text.startswith("^spawn"):
        return None
    if not item.text.strip().startswith("Spawn "):
        return None
    if len(item.links) != 1:
        return None
    return Spawning(item.event, item.links[0], identifier, item.index)


def _spawned(item: LinkItem) -> Spawned | None:
    if len(item.links) != 2:
        return None
    if not item.text.startswith("From ") or "in" not in item.text:
        return None
    origin, note_link = item.links
    if "spawn" not in origin.text or origin.sublink_name is None:
        return None
    identifier = BlockIdentifier.parse(origin.sublink_name)
    if identifier is None:
        return None
    return Spawned(item.event, note_link, identifier, item.index)


def infer_spawn_relations(
    linkables: Sequence[LinkableItem], links: Sequence[LinkItem]
) -> list[SpawnRelation]:
    """All spawning relations, then all spawned relations, in document order."""
    by_index: dict[int, list[LinkItem]] = {}
    for item in links:
        by_index.setdefault(item.index, []).append(item)

    spawning: list[SpawnRelation] = []
    for linkable in linkables:
        for item in by_index.get(linkable.index, ()):
            relation = _spawning(linkable, item)
            if relation is not None:
                spawning.append(relation)

    spawned: list[SpawnRelation] = [r for r in map(_spawned, links) if r is not None]

    logger.debug("Inferred %d spawning and %d spawned relations", len(spawning), len(spawned))
    return spawning + spawned
