"""Cluster-note layout of a vault.

A *cluster* is a folder named after its single note (the core note)::

    Project/
        Project.md              core note
        tasks/
            Fix login.md        peripheral note
        ideas/
            Dark mode.md

Every other markdown file is a normal note. The path wrappers below check
their classification once, when they are built.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, ClassVar, Iterable, Iterator, Union

from vaultmig.conventions import context_type_index
from vaultmig.errors import (
    AlreadyInClusterError,
    NotAFileError,
    PathClassificationError,
    TargetExistsError,
)

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE: tuple[str, ...] = (".obsidian", ".trash", ".git")


# ---------------------------------------------------------------------------
# Directory entries
# ---------------------------------------------------------------------------


class EntryKind(str, Enum):
    DIR = "dir"
    FILE = "file"
    SYMLINK = "symlink"


@dataclass(frozen=True)
class DirEntry:
    path: Path
    kind: EntryKind


def list_dir_entries(folder: Path) -> list[DirEntry]:
    """Direct children of *folder*, sorted by name. Symlinks are never followed."""
    entries: list[DirEntry] = []
    for child in sorted(folder.iterdir()):
        if child.is_symlink():
            kind = EntryKind.SYMLINK
        elif child.is_dir():
            kind = EntryKind.DIR
        elif child.is_file():
            kind = EntryKind.FILE
        else:
            raise PathClassificationError("Unrecognized directory entry", child)
        entries.append(DirEntry(child, kind))
    return entries


def child_file_count(folder: Path) -> int:
    return sum(1 for entry in list_dir_entries(folder) if entry.kind is EntryKind.FILE)


def folder_has_file_of_same_name(folder: Path) -> bool:
    """Whether exactly one direct child file has the folder's name as its stem."""
    matches = [
        entry
        for entry in list_dir_entries(folder)
        if entry.kind is EntryKind.FILE and entry.path.stem == folder.name
    ]
    return len(matches) == 1


def file_exists_in_folder_of_same_name(path: Path) -> bool:
    return path.is_file() and path.parent.name == path.stem


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_obsidian_vault_folder(path: Path) -> bool:
    return path.is_dir() and (path / ".obsidian").is_dir()


def is_cluster_root_folder(folder: Path) -> bool:
    if not folder.is_dir() or folder.is_symlink():
        return False
    return folder_has_file_of_same_name(folder) and child_file_count(folder) == 1


def is_cluster_category_folder(folder: Path) -> bool:
    if not folder.is_dir() or context_type_index(folder.name) is None:
        return False
    return is_cluster_root_folder(folder.parent)


def is_markdown_file(path: Path) -> bool:
    return path.is_file() and path.suffix == ".md"


def is_core_note_file(path: Path) -> bool:
    return is_markdown_file(path) and is_cluster_root_folder(path.parent)


def is_peripheral_note_file(path: Path) -> bool:
    return is_markdown_file(path) and is_cluster_category_folder(path.parent)


def is_normal_note_file(path: Path) -> bool:
    if not is_markdown_file(path):
        return False
    return not (is_core_note_file(path) or is_peripheral_note_file(path))


# ---------------------------------------------------------------------------
# Validated paths
# ---------------------------------------------------------------------------


class ValidatedPath:
    """A path that satisfied its classification predicate when it was wrapped."""

    check: ClassVar[Callable[[Path], bool]]
    description: ClassVar[str] = "path"

    __slots__ = ("_path",)

    def __init__(self, path: Path | str) -> None:
        path = Path(path)
        if not type(self).check(path):
            raise PathClassificationError(f"Not a {self.description}", path)
        self._path = path

    @classmethod
    def maybe(cls, path: Path | str):
        """The wrapped path, or ``None`` when *path* does not qualify."""
        try:
            return cls(path)
        except (PathClassificationError, OSError):
            return None

    @property
    def path(self) -> Path:
        return self._path

    def __fspath__(self) -> str:
        return str(self._path)

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.path == self._path

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._path))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self._path)!r})"


class ObsidianVaultPath(ValidatedPath):
    check = staticmethod(is_obsidian_vault_folder)
    description = "Obsidian vault folder"
    __slots__ = ()


class ClusterRootFolderPath(ValidatedPath):
    check = staticmethod(is_cluster_root_folder)
    description = "cluster root folder"
    __slots__ = ()

    @property
    def core_note(self) -> "CoreNoteFilePath":
        for entry in list_dir_entries(self.path):
            if entry.kind is EntryKind.FILE:
                return CoreNoteFilePath(entry.path)
        raise PathClassificationError("Cluster root folder has no core note", self.path)

    def category_folders(self) -> list[tuple["ClusterCategoryFolderPath", list["PeripheralNoteFilePath"]]]:
        """Category folders and their peripheral notes.

        Any other folder inside a cluster, or anything but a markdown file
        inside a category folder, breaks the layout and raises.
        """
        result = []
        for entry in list_dir_entries(self.path):
            if entry.kind is not EntryKind.DIR:
                continue
            category = ClusterCategoryFolderPath(entry.path)
            peripherals = []
            for child in list_dir_entries(entry.path):
                if child.kind is not EntryKind.FILE:
                    raise PathClassificationError("Category folders hold flat files only", child.path)
                peripherals.append(PeripheralNoteFilePath(child.path))
            result.append((category, peripherals))
        return result


class ClusterCategoryFolderPath(ValidatedPath):
    check = staticmethod(is_cluster_category_folder)
    description = "cluster category folder"
    __slots__ = ()


class CoreNoteFilePath(ValidatedPath):
    check = staticmethod(is_core_note_file)
    description = "core note file"
    __slots__ = ()


class PeripheralNoteFilePath(ValidatedPath):
    check = staticmethod(is_peripheral_note_file)
    description = "peripheral note file"
    __slots__ = ()


class NormalNoteFilePath(ValidatedPath):
    check = staticmethod(is_normal_note_file)
    description = "normal note file"
    __slots__ = ()


# ---------------------------------------------------------------------------
# Working paths
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NoteWorkingPath:
    note: NormalNoteFilePath

    def note_paths(self) -> Iterator[Path]:
        yield self.note.path


@dataclass(frozen=True)
class ClusterWorkingPath:
    root: ClusterRootFolderPath
    core_note: CoreNoteFilePath
    categories: tuple[tuple[ClusterCategoryFolderPath, tuple[PeripheralNoteFilePath, ...]], ...] = ()

    @property
    def peripheral_notes(self) -> list[PeripheralNoteFilePath]:
        return [note for _, notes in self.categories for note in notes]

    def note_paths(self) -> Iterator[Path]:
        yield self.core_note.path
        for note in self.peripheral_notes:
            yield note.path


WorkingPath = Union[NoteWorkingPath, ClusterWorkingPath]


def collect_working_paths(folder: Path, exclude: Iterable[str] = DEFAULT_EXCLUDE) -> list[WorkingPath]:
    """Every normal note and cluster below *folder*.

    Folders named in *exclude* are not descended into, symlinks are ignored
    and so is any file that is not markdown.
    """
    excluded = set(exclude)
    items: list[WorkingPath] = []

    for entry in list_dir_entries(folder):
        if entry.path.name in excluded or entry.kind is EntryKind.SYMLINK:
            continue
        if entry.kind is EntryKind.DIR:
            root = ClusterRootFolderPath.maybe(entry.path)
            if root is None:
                items.extend(collect_working_paths(entry.path, excluded))
                continue
            categories = tuple((category, tuple(notes)) for category, notes in root.category_folders())
            items.append(ClusterWorkingPath(root, root.core_note, categories))
        else:
            note = NormalNoteFilePath.maybe(entry.path)
            if note is not None:
                items.append(NoteWorkingPath(note))

    return items


def _matches_link(path: Path, note_link: str) -> bool:
    wanted = Path(note_link).parts
    if not wanted:
        return False
    candidate = path.parts if note_link.endswith(".md") else path.with_suffix("").parts
    return candidate[-len(wanted) :] == wanted


def note_link_to_path(working_paths: Iterable[WorkingPath], note_link: str) -> Path | None:
    """First note whose path ends with the components of *note_link*."""
    for item in working_paths:
        for path in item.note_paths():
            if _matches_link(path, note_link):
                return path
    return None


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def cluster_root_for(path: Path) -> Path:
    """Folder a note's cluster lives in, whether or not it exists yet."""
    if is_core_note_file(path):
        return path.parent
    return path.parent / path.stem


def turn_note_into_cluster_note(path: Path) -> CoreNoteFilePath:
    """Move a normal note into a new folder of the same name, making it a core note."""
    if not path.is_file():
        raise NotAFileError(path)
    if is_cluster_root_folder(path.parent):
        raise AlreadyInClusterError(path.parent)

    root = path.parent / path.stem
    if root.exists():
        raise TargetExistsError(root)

    root.mkdir()
    target = root / path.name
    shutil.move(str(path), str(target))
    logger.info("Turned %s into cluster note %s", path, target)
    return CoreNoteFilePath(target)
