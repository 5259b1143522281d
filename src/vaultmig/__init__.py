"""vaultmig: structural migration of an Obsidian vault to cluster notes."""

from vaultmig.errors import MigrationError
from vaultmig.index import VaultIndex
from vaultmig.note import Note
from vaultmig.parser import parse_markdown, parse_note
from vaultmig.patch import patch_for_obsidian
from vaultmig.render import render_events
from vaultmig.writeback import writeback_text

__version__ = "0.1.0"

__all__ = [
    "MigrationError",
    "Note",
    "VaultIndex",
    "parse_markdown",
    "parse_note",
    "patch_for_obsidian",
    "render_events",
    "writeback_text",
]
