"""Exception hierarchy.

Every fatal condition of the migration core derives from
:class:`MigrationError` so callers can abort one document and carry on with
the next. Absences (no frontmatter, no links, no spawn relation) are never
exceptions.
"""

from __future__ import annotations

from pathlib import Path


class MigrationError(Exception):
    """Base class for all errors raised by vaultmig."""

    @property
    def kind(self) -> str:
        return type(self).__name__


# ---------------------------------------------------------------------------
# Structural parsing
# ---------------------------------------------------------------------------


class StructuralParseError(MigrationError):
    """The event stream does not have the shape the parser relies on."""


class HeadingPatternError(StructuralParseError):
    """Events at a position are not ``Start(Heading) Text End(Heading)``."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class UnbalancedHeadingError(StructuralParseError):
    def __init__(self, start_level: int, end_level: int) -> None:
        super().__init__(
            f"Heading start and end must have identical levels, got H{start_level} closed by H{end_level}"
        )
        self.start_level = start_level
        self.end_level = end_level


class EmptyContentRunError(StructuralParseError):
    def __init__(self, position: int) -> None:
        super().__init__(
            f"Expected content at event {position} but the run is empty; "
            "the document nests something other than plain text inside an H1/H2 heading"
        )
        self.position = position


# ---------------------------------------------------------------------------
# Legacy format
# ---------------------------------------------------------------------------


class LegacyFormatError(MigrationError):
    pass


class UnknownLegacyLabelError(LegacyFormatError):
    def __init__(self, label: str) -> None:
        super().__init__(f"Unrecognized legacy heading label: {label!r}")
        self.label = label


class LegacyNotConfiguredError(LegacyFormatError):
    """A content group appeared before its type or name heading."""

    def __init__(self, missing: str, position: int) -> None:
        super().__init__(f"Legacy entry {missing} not established before content at event {position}")
        self.missing = missing
        self.position = position


# ---------------------------------------------------------------------------
# Link syntax
# ---------------------------------------------------------------------------


class LinkSyntaxError(MigrationError):
    def __init__(self, message: str, text: str) -> None:
        super().__init__(message)
        self.text = text


class MissingBracketsError(LinkSyntaxError):
    def __init__(self, text: str) -> None:
        super().__init__(f"A wiki-link must start with [[ and end with ]]: {text!r}", text)


class TooManyHashesError(LinkSyntaxError):
    def __init__(self, count: int, text: str) -> None:
        super().__init__(f"A wiki-link must have zero or one '#' but found {count}: {text!r}", text)
        self.count = count


class TooManyBarsError(LinkSyntaxError):
    def __init__(self, count: int, text: str) -> None:
        super().__init__(f"A wiki-link must have zero or one bar '|' but found {count}: {text!r}", text)
        self.count = count


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class RenderError(MigrationError):
    pass


# ---------------------------------------------------------------------------
# Filesystem / cluster layout
# ---------------------------------------------------------------------------


class ClusterError(MigrationError):
    def __init__(self, message: str, path: Path) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


class PathClassificationError(ClusterError):
    pass


class NotAFileError(ClusterError):
    def __init__(self, path: Path) -> None:
        super().__init__("Provided path is not a file", path)


class AlreadyInClusterError(ClusterError):
    def __init__(self, path: Path) -> None:
        super().__init__("Provided path is already in a cluster root folder", path)


class TargetExistsError(ClusterError):
    def __init__(self, path: Path) -> None:
        super().__init__("Refusing to overwrite existing path", path)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(MigrationError):
    pass


# ---------------------------------------------------------------------------
# Reading notes
# ---------------------------------------------------------------------------


class NoteReadError(MigrationError):
    """A note file cannot be opened or is not UTF-8 text."""

    def __init__(self, path: Path, reason: Exception) -> None:
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path
        self.reason = reason
