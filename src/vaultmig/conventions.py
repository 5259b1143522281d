"""Fixed naming conventions of cluster notes and the legacy journal format.

The context-type tables are positionally aligned: index *i* of every
``CONTEXT_TYPE_*`` tuple describes the same context type.
"""

from __future__ import annotations

NUM_CONTEXT_TYPES = 7

CONTEXT_TYPE_FOLDERS: tuple[str, ...] = (
    "entries",
    "howtos",
    "ideas",
    "inferences",
    "investigations",
    "issues",
    "tasks",
)

CONTEXT_TYPE_BLOCK_IDENTIFIER_CODES: tuple[str, ...] = (
    "entry",
    "howto",
    "idea",
    "infer",
    "invst",
    "issue",
    "task",
)

CONTEXT_TYPE_HEADINGS_SINGULAR: tuple[str, ...] = (
    "Entry",
    "HowTo",
    "Idea",
    "Inference",
    "Investigation",
    "Issue",
    "Task",
)

CONTEXT_TYPE_HEADINGS: tuple[str, ...] = (
    "Entries",
    "HowTos",
    "Ideas",
    "Inferences",
    "Investigations",
    "Issues",
    "Tasks",
)

#: H1 labels of the deprecated journal layout
LEGACY_HEADINGS: tuple[str, ...] = (
    "Tasks",
    "Issues",
    "HowTos",
    "Investigations",
    "Ideas",
    "Side Notes",
)

_DOER_HEADINGS = frozenset({"HowTos", "Investigations", "Issues", "Tasks"})


def context_type_index(folder_name: str) -> int | None:
    """Position of a category folder name in the context-type tables."""
    try:
        return CONTEXT_TYPE_FOLDERS.index(folder_name)
    except ValueError:
        return None


def context_type_is_doer(index: int) -> bool:
    """Whether the context type describes work to be done rather than notes."""
    if not 0 <= index < NUM_CONTEXT_TYPES:
        return False
    return CONTEXT_TYPE_HEADINGS[index] in _DOER_HEADINGS
