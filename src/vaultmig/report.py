"""Legacy-entry summary tables.

Returns :mod:`polars` DataFrames with one row per legacy entry.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

import polars as pl

from vaultmig.errors import MigrationError
from vaultmig.links import extract_linkables, extract_links
from vaultmig.note import Note
from vaultmig.spawn import Spawned, Spawning, infer_spawn_relations

logger = logging.getLogger(__name__)

SUMMARY_SCHEMA: dict[str, Any] = {
    "path": pl.Utf8,
    "type": pl.Utf8,
    "name": pl.Utf8,
    "events": pl.Int64,
    "linkables": pl.Int64,
    "links": pl.Int64,
    "spawning": pl.Int64,
    "spawned": pl.Int64,
}


def summarize_note(note: Note) -> list[dict[str, Any]]:
    """One summary row per legacy entry of *note*."""
    rows: list[dict[str, Any]] = []
    for entry in note.legacy_entries:
        events = list(entry.events)
        linkables = extract_linkables(events)
        links = extract_links(events, skip_invalid=note.skip_invalid_links)
        relations = infer_spawn_relations(linkables, links)
        rows.append(
            {
                "path": str(note.path),
                "type": entry.entry_type.value,
                "name": entry.entry_name,
                "events": len(events),
                "linkables": len(linkables),
                "links": sum(len(item.links) for item in links),
                "spawning": sum(isinstance(r, Spawning) for r in relations),
                "spawned": sum(isinstance(r, Spawned) for r in relations),
            }
        )
    return rows


def summarize_notes(notes: Iterable[Note], *, failures: list[tuple[Path, MigrationError]] | None = None) -> pl.DataFrame:
    """Summary rows of every note, sorted by path.

    Parameters
    ----------
    notes:
        Parsed notes.
    failures:
        When given, notes whose entries cannot be extracted are appended here
        instead of raising.
    """
    rows: list[dict[str, Any]] = []
    for note in notes:
        try:
            rows.extend(summarize_note(note))
        except MigrationError as exc:
            if failures is None:
                raise
            logger.error("%s: %s: %s", note.path, exc.kind, exc)
            failures.append((note.path, exc))
    return pl.DataFrame(rows, schema=SUMMARY_SCHEMA).sort("path", maintain_order=True)


def entry_type_counts(summary: pl.DataFrame) -> pl.DataFrame:
    """Number of entries per legacy type, most frequent first."""
    return (
        summary.group_by("type")
        .agg(pl.len().alias("entries"))
        .sort(["entries", "type"], descending=[True, False])
    )
