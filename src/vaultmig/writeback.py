"""Writeback: re-serialize notes in Obsidian's own formatting."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from vaultmig.errors import MigrationError
from vaultmig.parser import parse_markdown, read_note_text
from vaultmig.patch import patch_for_obsidian
from vaultmig.render import render_events

logger = logging.getLogger(__name__)


@dataclass
class DocumentFailure:
    path: Path
    kind: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": str(self.path), "kind": self.kind, "message": self.message}


@dataclass
class BatchResult:
    """Outcome of running one operation over many documents."""

    changed: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    failed: list[DocumentFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def record_failure(self, path: Path, exc: MigrationError) -> None:
        logger.error("%s: %s: %s", path, exc.kind, exc)
        self.failed.append(DocumentFailure(path, exc.kind, str(exc)))


def writeback_text(content: str) -> str:
    """Parse, render and patch *content*.

    The source's trailing newline, if any, is kept; the renderer never emits
    one itself.
    """
    rendered = render_events(parse_markdown(content))
    patched = patch_for_obsidian(content, rendered)
    if content.endswith("\n") and not patched.endswith("\n"):
        patched += "\n"
    return patched


def writeback_note(path: Path, *, dry_run: bool = False) -> bool:
    """Rewrite one note in place. Returns whether its text changed.

    Nothing is written unless the whole pipeline succeeded.
    """
    content = read_note_text(path)
    new_content = writeback_text(content)
    if new_content == content:
        logger.debug("Unchanged: %s", path)
        return False
    if dry_run:
        logger.info("Would rewrite %s", path)
    else:
        path.write_text(new_content, encoding="utf-8")
        logger.info("Rewrote %s", path)
    return True


def writeback_paths(paths: Iterable[Path], *, dry_run: bool = False) -> BatchResult:
    """Write back every path; a failing document does not stop the others."""
    result = BatchResult()
    for path in paths:
        try:
            changed = writeback_note(path, dry_run=dry_run)
        except MigrationError as exc:
            result.record_failure(path, exc)
            continue
        (result.changed if changed else result.unchanged).append(path)
    return result
