"""Unit tests for vaultmig.extract."""

import textwrap
from pathlib import Path

import pytest

from vaultmig.errors import TargetExistsError
from vaultmig.extract import (
    apply_extraction,
    extract_vault,
    index_heading,
    peripheral_name,
    plan_extraction,
)
from vaultmig.index import VaultIndex
from vaultmig.parser import parse_note

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

JOURNAL = """\
    # Objective

    Ship it.

    # Tasks

    ## Fix login

    From [[Origin#^spawn-task-1a2b3c|spawn]] in [[Origin]]

    Steps here.

    ## Write docs

    Draft.

    # Log

    See [[#Fix login]].
"""


def _write_note(directory: Path, name: str, content: str) -> Path:
    path = directory / f"{name}.md"
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


@pytest.fixture()
def vault(tmp_path: Path) -> VaultIndex:
    (tmp_path / ".obsidian").mkdir()
    _write_note(tmp_path, "Journal", JOURNAL)
    _write_note(tmp_path, "Other", "Read [[Journal#Fix login|the fix]].\n")
    return VaultIndex(tmp_path).build()


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


class TestNaming:
    @pytest.mark.parametrize(
        "heading, expected",
        [
            ("Fix login", "Fix login"),
            ("Fix: login?", "Fix login"),
            ("a/b#c", "a b c"),
            ("***", "Untitled"),
        ],
    )
    def test_peripheral_name(self, heading, expected):
        assert peripheral_name(heading) == expected

    def test_index_heading(self):
        assert index_heading("Tasks") == "Tasks Index"
        assert index_heading("2 Side Notes") == "Entries Index"


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


class TestPlanExtraction:
    def test_drafts(self, vault: VaultIndex):
        root = vault.vault_dir
        plan = plan_extraction(parse_note(root / "Journal.md"))
        assert plan.needs_cluster
        assert plan.core_note_path == root / "Journal" / "Journal.md"
        assert [d.path for d in plan.drafts] == [
            root / "Journal" / "tasks" / "Fix login.md",
            root / "Journal" / "tasks" / "Write docs.md",
        ]

    def test_spawned_paragraph_moves_into_frontmatter(self, vault: VaultIndex):
        plan = plan_extraction(parse_note(vault.vault_dir / "Journal.md"))
        fix_login = plan.drafts[0]
        assert fix_login.spawned_by == "Origin"
        assert fix_login.content == textwrap.dedent("""\
            ---
            parent: '[[Journal]]'
            context_type: task
            spawned_by: '[[Origin]]'
            ---

            Steps here.
        """)

    def test_draft_without_spawn(self, vault: VaultIndex):
        plan = plan_extraction(parse_note(vault.vault_dir / "Journal.md"))
        assert plan.drafts[1].content == "---\nparent: '[[Journal]]'\ncontext_type: task\n---\n\nDraft.\n"

    def test_core_content(self, vault: VaultIndex):
        plan = plan_extraction(parse_note(vault.vault_dir / "Journal.md"))
        assert plan.core_content == textwrap.dedent("""\
            # Objective

            Ship it.

            # Tasks Index

            - [[Fix login]]
            - [[Write docs]]

            # Log

            See [[Fix login]].
        """)

    def test_redirects(self, vault: VaultIndex):
        plan = plan_extraction(parse_note(vault.vault_dir / "Journal.md"))
        assert plan.redirect("[[Journal#Write docs]] [[Journal#Objective]]") == (
            "[[Write docs]] [[Journal#Objective]]"
        )

    def test_note_without_legacy_entries(self, vault: VaultIndex):
        assert plan_extraction(parse_note(vault.vault_dir / "Other.md")) is None

    def test_duplicate_entry_names(self, tmp_path: Path):
        path = _write_note(tmp_path, "Dup", """\
            # Tasks
            ## Same
            One.
            ## Same
            Two.
        """)
        with pytest.raises(TargetExistsError):
            plan_extraction(parse_note(path))

    def test_heading_without_content_is_still_indexed(self, tmp_path: Path):
        path = _write_note(tmp_path, "Notes", """\
            # Log

            text

            # Tasks

            ## Empty idea

            ## Real

            body

            # Other
        """)
        plan = plan_extraction(parse_note(path))
        assert [d.path for d in plan.drafts] == [
            tmp_path / "Notes" / "tasks" / "Empty idea.md",
            tmp_path / "Notes" / "tasks" / "Real.md",
        ]
        assert plan.drafts[0].content == "---\nparent: '[[Notes]]'\ncontext_type: task\n---\n"
        assert plan.core_content == textwrap.dedent("""\
            # Log

            text

            # Tasks Index

            - [[Empty idea]]
            - [[Real]]

            # Other
        """)

    def test_last_heading_without_content(self, tmp_path: Path):
        path = _write_note(tmp_path, "Notes", "# Ideas\n\n## Later\n")
        plan = plan_extraction(parse_note(path))
        assert [d.link_name for d in plan.drafts] == ["Later"]
        assert plan.core_content == "# Ideas Index\n\n- [[Later]]\n"


# ---------------------------------------------------------------------------
# Applying
# ---------------------------------------------------------------------------


class TestApplyExtraction:
    def test_files_are_written(self, vault: VaultIndex):
        root = vault.vault_dir
        plan = plan_extraction(parse_note(root / "Journal.md"))
        written = apply_extraction(plan, vault)

        assert not (root / "Journal.md").exists()
        core = root / "Journal" / "Journal.md"
        assert core.read_text(encoding="utf-8") == plan.core_content
        assert (root / "Journal" / "tasks" / "Write docs.md").read_text(encoding="utf-8") == plan.drafts[1].content
        assert (root / "Other.md").read_text(encoding="utf-8") == "Read [[Fix login|the fix]].\n"
        assert set(written) == {core, *(d.path for d in plan.drafts), root / "Other.md"}

    def test_migrated_note_has_nothing_left(self, vault: VaultIndex):
        root = vault.vault_dir
        apply_extraction(plan_extraction(parse_note(root / "Journal.md")), vault)
        assert plan_extraction(parse_note(root / "Journal" / "Journal.md")) is None

    def test_dry_run_writes_nothing(self, vault: VaultIndex):
        root = vault.vault_dir
        plan = plan_extraction(parse_note(root / "Journal.md"))
        written = apply_extraction(plan, vault, dry_run=True)
        assert len(written) == 4
        assert (root / "Journal.md").exists()
        assert not (root / "Journal").exists()

    def test_existing_peripheral_is_not_overwritten(self, vault: VaultIndex):
        root = vault.vault_dir
        plan = plan_extraction(parse_note(root / "Journal.md"))
        (root / "Journal" / "tasks").mkdir(parents=True)
        (root / "Journal" / "tasks" / "Fix login.md").write_text("mine\n", encoding="utf-8")
        with pytest.raises(TargetExistsError):
            apply_extraction(plan, vault)
        assert (root / "Journal.md").exists()
        assert (root / "Journal" / "tasks" / "Fix login.md").read_text(encoding="utf-8") == "mine\n"


class TestExtractVault:
    def test_whole_vault(self, vault: VaultIndex):
        root = vault.vault_dir
        result = extract_vault(vault)
        assert result.changed == [root / "Journal.md"]
        assert result.unchanged == [root / "Other.md"]
        assert result.ok
        assert root / "Journal" / "tasks" / "Fix login.md" in vault.note_paths()

    def test_failing_note_does_not_stop_the_others(self, vault: VaultIndex):
        root = vault.vault_dir
        _write_note(root, "Broken", "# Tasks\n\nOrphan content.\n")
        vault.build()
        result = extract_vault(vault)
        assert [(f.path, f.kind) for f in result.failed] == [(root / "Broken.md", "LegacyNotConfiguredError")]
        assert result.changed == [root / "Journal.md"]
        assert (root / "Broken.md").read_text(encoding="utf-8") == "# Tasks\n\nOrphan content.\n"

    def test_undecodable_note_is_a_failure(self, vault: VaultIndex):
        root = vault.vault_dir
        (root / "Binary.md").write_bytes(b"\xff\xfe# Tasks\n")
        vault.build()
        result = extract_vault(vault)
        assert [(f.path, f.kind) for f in result.failed] == [(root / "Binary.md", "NoteReadError")]
        assert result.changed == [root / "Journal.md"]
        assert (root / "Other.md").read_text(encoding="utf-8") == "Read [[Fix login|the fix]].\n"

    def test_dry_run(self, vault: VaultIndex):
        root = vault.vault_dir
        result = extract_vault(vault, dry_run=True)
        assert result.changed == [root / "Journal.md"]
        assert (root / "Journal.md").read_text(encoding="utf-8") == textwrap.dedent(JOURNAL)
        assert (root / "Other.md").read_text(encoding="utf-8") == "Read [[Journal#Fix login|the fix]].\n"
