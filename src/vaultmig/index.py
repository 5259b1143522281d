"""VaultIndex: the notes and clusters of a vault."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from vaultmig.cluster import (
    DEFAULT_EXCLUDE,
    ClusterWorkingPath,
    CoreNoteFilePath,
    PeripheralNoteFilePath,
    WorkingPath,
    collect_working_paths,
    note_link_to_path,
)
from vaultmig.frontmatter import read_note_link_property

logger = logging.getLogger(__name__)


class VaultIndex:
    """Scans a vault directory for normal notes and cluster notes."""

    def __init__(self, vault_dir: Path, exclude: Iterable[str] = DEFAULT_EXCLUDE) -> None:
        self.vault_dir = Path(vault_dir)
        self.exclude = tuple(exclude)
        self.working_paths: list[WorkingPath] = []

    # ------------------------------------------------------------------
    # Build / refresh
    # ------------------------------------------------------------------

    def build(self) -> "VaultIndex":
        """(Re-)scan the vault."""
        self.working_paths = collect_working_paths(self.vault_dir, self.exclude)
        logger.debug(
            "Indexed %d working paths (%d clusters) under %s",
            len(self.working_paths),
            sum(isinstance(item, ClusterWorkingPath) for item in self.working_paths),
            self.vault_dir,
        )
        return self

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def note_paths(self) -> list[Path]:
        """Every note in directory order; a cluster yields its core note, then its peripheral notes."""
        return [path for item in self.working_paths for path in item.note_paths()]

    def non_peripheral_note_paths(self) -> list[Path]:
        paths: list[Path] = []
        for item in self.working_paths:
            if isinstance(item, ClusterWorkingPath):
                paths.append(item.core_note.path)
            else:
                paths.append(item.note.path)
        return paths

    def clusters(self) -> list[ClusterWorkingPath]:
        return [item for item in self.working_paths if isinstance(item, ClusterWorkingPath)]

    def resolve_link(self, note_link: str) -> Path | None:
        return note_link_to_path(self.working_paths, note_link)

    def core_note_of_peripheral(self, peripheral: PeripheralNoteFilePath) -> CoreNoteFilePath | None:
        """Core note named by the peripheral note's ``parent`` property."""
        parent = read_note_link_property(peripheral.path, "parent")
        if parent is None:
            return None
        path = self.resolve_link(parent)
        if path is None:
            return None
        return CoreNoteFilePath.maybe(path)
