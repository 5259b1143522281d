"""Split legacy journal entries out into peripheral notes.

For a note holding legacy sections::

    # Tasks
    ## Fix login
    Steps ...

the note becomes the core note of a cluster, every entry becomes
``<cluster>/tasks/Fix login.md`` and the section is replaced by an index::

    # Tasks Index

    - [[Fix login]]

Links elsewhere in the vault to ``[[Note#Fix login]]`` are pointed at
``[[Fix login]]``. Everything is computed first; files are only touched
once the whole plan for a note exists.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import yaml

from vaultmig.cluster import CoreNoteFilePath, cluster_root_for, is_core_note_file, turn_note_into_cluster_note
from vaultmig.errors import MigrationError, NoteReadError, TargetExistsError
from vaultmig.events import End, Event, Start, TagKind
from vaultmig.index import VaultIndex
from vaultmig.conventions import CONTEXT_TYPE_HEADINGS
from vaultmig.legacy import LegacyEntry, LegacyEntryType, is_legacy_heading, legacy_label, retain_legacy_groups
from vaultmig.links import extract_linkables, extract_links, redirect_wiki_links
from vaultmig.note import Note
from vaultmig.parser import parse_note, read_note_text
from vaultmig.render import render_events
from vaultmig.sections import GroupKind
from vaultmig.spawn import Spawned, infer_spawn_relations
from vaultmig.writeback import BatchResult

logger = logging.getLogger(__name__)

# characters Obsidian does not allow in note names
_FORBIDDEN_NAME_CHARS = re.compile(r'[\\/:*?"<>|#^\[\]]')


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PeripheralDraft:
    entry: LegacyEntry
    path: Path
    #: note name other notes link to
    link_name: str
    content: str
    spawned_by: str | None = None


@dataclass(frozen=True)
class LinkRedirect:
    note: str
    sublink: str
    new_target: str

    def apply(self, text: str, *, same_note: bool = False) -> str:
        return redirect_wiki_links(text, self.note, self.sublink, self.new_target, same_note=same_note)


@dataclass
class ExtractionPlan:
    note_path: Path
    cluster_root: Path
    core_content: str
    drafts: list[PeripheralDraft] = field(default_factory=list)
    redirects: list[LinkRedirect] = field(default_factory=list)

    @property
    def needs_cluster(self) -> bool:
        return not is_core_note_file(self.note_path)

    @property
    def core_note_path(self) -> Path:
        return self.cluster_root / self.note_path.name

    def redirect(self, text: str, *, same_note: bool = False) -> str:
        for redirect in self.redirects:
            text = redirect.apply(text, same_note=same_note)
        return text


def peripheral_name(entry_name: str) -> str:
    """File-system safe note name for an entry heading."""
    name = " ".join(_FORBIDDEN_NAME_CHARS.sub(" ", entry_name).split())
    return name or "Untitled"


def index_heading(legacy_heading: str) -> str:
    """Heading of the link index that replaces a legacy section.

    Never itself a legacy label, so an extracted note extracts to nothing.
    """
    entry_type = LegacyEntryType.from_label(legacy_label(legacy_heading))
    return f"{CONTEXT_TYPE_HEADINGS[entry_type.context_index]} Index"


def _strip_spawned_paragraphs(events: Sequence[Event], indexes: set[int]) -> list[Event]:
    """Drop the ``From [[...]] in [[...]]`` paragraphs; they move into frontmatter."""
    drop: set[int] = set()
    for index in indexes:
        if index < 1 or index + 1 >= len(events):
            continue
        before, after = events[index - 1], events[index + 1]
        if (
            isinstance(before, Start)
            and before.tag.kind is TagKind.PARAGRAPH
            and isinstance(after, End)
            and after.tag.kind is TagKind.PARAGRAPH
        ):
            drop.update((index - 1, index, index + 1))
    return [event for i, event in enumerate(events) if i not in drop]


def _frontmatter(properties: dict[str, str]) -> str:
    dumped = yaml.safe_dump(properties, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{dumped}---\n"


def draft_peripheral(entry: LegacyEntry, core_name: str, cluster_root: Path, *, skip_invalid_links: bool = False) -> PeripheralDraft:
    events = list(entry.events)
    relations = infer_spawn_relations(
        extract_linkables(events), extract_links(events, skip_invalid=skip_invalid_links)
    )
    spawned = [r for r in relations if isinstance(r, Spawned)]
    spawned_by = spawned[0].note_link.file_target if spawned else None

    properties = {"parent": f"[[{core_name}]]", "context_type": entry.entry_type.context_type}
    if spawned_by:
        properties["spawned_by"] = f"[[{spawned_by}]]"

    body = render_events(_strip_spawned_paragraphs(events, {r.index for r in spawned}))
    content = _frontmatter(properties) + (f"\n{body}\n" if body else "")

    name = peripheral_name(entry.entry_name)
    path = cluster_root / entry.entry_type.category_folder / f"{name}.md"
    return PeripheralDraft(entry, path, name, content, spawned_by)


def _headings_without_content(note: Note) -> list[LegacyEntry]:
    """Entries for legacy H2s with nothing under them.

    They become empty peripheral notes, so the index still lists them.
    """
    groups = retain_legacy_groups(note.sections)
    entries: list[LegacyEntry] = []
    entry_type: LegacyEntryType | None = None
    for group, following in zip(groups, [*groups[1:], None]):
        if group.kind is GroupKind.HEADING1:
            entry_type = LegacyEntryType.from_label(legacy_label(group.text))
        elif group.kind is GroupKind.HEADING2 and entry_type is not None:
            if following is None or following.kind is not GroupKind.CONTENT:
                entries.append(LegacyEntry(entry_type, group.text.strip(), (), (group.start, group.start)))
    return entries


def _core_content(note: Note, drafts: Sequence[PeripheralDraft]) -> str:
    """The note's source with each legacy H1 section replaced by a link index."""
    lines = note.content.splitlines(keepends=True)
    h1_groups = [g for g in note.sections if g.kind is GroupKind.HEADING1]

    out: list[str] = []
    cursor = 0
    for i, group in enumerate(h1_groups):
        if not is_legacy_heading(group.text):
            continue
        start_line = note.events[group.start].line or 0
        if i + 1 < len(h1_groups):
            next_group = h1_groups[i + 1]
            end_line = note.events[next_group.start].line or len(lines)
            end_event = next_group.start
        else:
            end_line = len(lines)
            end_event = len(note.events)

        out.extend(lines[cursor:start_line])
        block = f"# {index_heading(group.text)}\n\n"
        block += "".join(
            f"- [[{d.link_name}]]\n" for d in drafts if group.start <= d.entry.span[0] < end_event
        )
        if end_line < len(lines):
            block += "\n"
        out.append(block)
        cursor = end_line

    out.extend(lines[cursor:])
    return "".join(out)


def plan_extraction(note: Note) -> ExtractionPlan | None:
    """Work out every file change for *note*, or ``None`` if it has no legacy entries.

    Reads the filesystem only to tell whether *note* already is a core note.
    """
    entries = sorted([*note.legacy_entries, *_headings_without_content(note)], key=lambda e: e.span[0])
    if not entries:
        return None

    cluster_root = cluster_root_for(note.path)
    core_name = note.path.stem

    drafts: list[PeripheralDraft] = []
    seen: set[Path] = set()
    for entry in entries:
        draft = draft_peripheral(entry, core_name, cluster_root, skip_invalid_links=note.skip_invalid_links)
        if draft.path in seen:
            raise TargetExistsError(draft.path)
        seen.add(draft.path)
        drafts.append(draft)

    plan = ExtractionPlan(
        note_path=note.path,
        cluster_root=cluster_root,
        core_content="",
        redirects=[LinkRedirect(core_name, d.entry.entry_name, d.link_name) for d in drafts],
    )
    # in-note links like [[#Fix login]] follow their section out of the note
    plan.core_content = plan.redirect(_core_content(note, drafts), same_note=True)
    plan.drafts = [
        PeripheralDraft(d.entry, d.path, d.link_name, plan.redirect(d.content, same_note=True), d.spawned_by)
        for d in drafts
    ]
    logger.debug("Planned %d peripheral notes for %s", len(plan.drafts), note.path)
    return plan


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


def apply_extraction(plan: ExtractionPlan, index: VaultIndex, *, dry_run: bool = False) -> list[Path]:
    """Carry out *plan*. Returns the paths written (or that would be)."""
    for draft in plan.drafts:
        if draft.path.exists():
            raise TargetExistsError(draft.path)

    rewrites: dict[Path, str] = {}
    for path in index.note_paths():
        if path == plan.note_path:
            continue
        try:
            text = read_note_text(path)
        except NoteReadError as exc:
            logger.warning("Not redirecting links in %s: %s", path, exc.reason)
            continue
        redirected = plan.redirect(text)
        if redirected != text:
            rewrites[path] = redirected

    core_path = plan.core_note_path
    written = [core_path, *(d.path for d in plan.drafts), *rewrites]
    if dry_run:
        for path in written:
            logger.info("Would write %s", path)
        return written

    if plan.needs_cluster:
        core_path = turn_note_into_cluster_note(plan.note_path).path
    else:
        core_path = CoreNoteFilePath(plan.note_path).path

    core_path.write_text(plan.core_content, encoding="utf-8")
    for draft in plan.drafts:
        draft.path.parent.mkdir(exist_ok=True)
        draft.path.write_text(draft.content, encoding="utf-8")
        logger.info("Created %s", draft.path)
    for path, text in rewrites.items():
        path.write_text(text, encoding="utf-8")
        logger.info("Redirected links in %s", path)
    return written


def extract_vault(index: VaultIndex, *, dry_run: bool = False, skip_invalid_links: bool = False) -> BatchResult:
    """Extract legacy entries from every normal and core note of the vault."""
    result = BatchResult()
    for path in index.non_peripheral_note_paths():
        try:
            plan = plan_extraction(parse_note(path, skip_invalid_links=skip_invalid_links))
            if plan is None:
                result.unchanged.append(path)
                continue
            apply_extraction(plan, index, dry_run=dry_run)
        except MigrationError as exc:
            result.record_failure(path, exc)
            continue
        result.changed.append(path)
        if not dry_run:
            index.build()
    return result
