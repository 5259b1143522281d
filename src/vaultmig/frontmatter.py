"""Frontmatter property block as seen through the event stream.

CommonMark has no notion of YAML frontmatter, so Obsidian's::

    ---
    status: todo
    parent: "[[Some Note]]"
    ---

tokenizes as a thematic break followed by a setext H2 whose lines are the
properties. That event shape is what is recognized here.
"""

from __future__ import annotations

from pathlib import Path
from typing import NamedTuple, Sequence

import yaml

from vaultmig.events import Event, Rule, SoftBreak, Text, is_heading_end, is_heading_start
from vaultmig.parser import parse_markdown, read_note_text


class FrontmatterProperty(NamedTuple):
    key: str
    value: str


def extract_frontmatter(events: Sequence[Event]) -> list[FrontmatterProperty] | None:
    """Return the ordered properties of a leading frontmatter block, or ``None``.

    Expects ``Rule, Start(H2), {Text | SoftBreak}*, End(H2)`` at the very
    start of *events*. A ``Text`` line must hold exactly one ``:``; anything
    else means the document has no frontmatter.
    """
    if len(events) < 3:
        return None
    if not isinstance(events[0], Rule) or not is_heading_start(events[1], 2):
        return None

    properties: list[FrontmatterProperty] = []
    for event in events[2:]:
        if is_heading_end(event):
            return properties if is_heading_end(event, 2) else None
        if isinstance(event, SoftBreak):
            continue
        if not isinstance(event, Text):
            return None
        parts = event.text.split(":")
        if len(parts) != 2:
            return None
        properties.append(FrontmatterProperty(parts[0], parts[1]))
    return None


def get_property(properties: Sequence[FrontmatterProperty], key: str) -> str | None:
    """Value of the first property named *key*."""
    for prop in properties:
        if prop.key == key:
            return prop.value
    return None


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        try:
            loaded = yaml.safe_load(value)
        except yaml.YAMLError:
            return value
        if isinstance(loaded, str):
            return loaded
    return value


def note_link_property(properties: Sequence[FrontmatterProperty], key: str) -> str | None:
    """Bare note name of a ``key: "[[Note]]"`` property.

    Returns ``None`` when the key is missing or its value is not shaped like
    a wiki-link.
    """
    value = get_property(properties, key)
    if value is None:
        return None
    value = _unquote(value.strip())
    if not value.startswith("[[") or not value.endswith("]]"):
        return None
    return value[2:-2]


def read_note_link_property(path: Path, key: str) -> str | None:
    """File variant of :func:`note_link_property`."""
    properties = extract_frontmatter(parse_markdown(read_note_text(path)))
    if properties is None:
        return None
    return note_link_property(properties, key)
