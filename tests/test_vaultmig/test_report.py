"""Unit tests for vaultmig.report."""

import textwrap
from pathlib import Path

import pytest

from vaultmig.errors import LegacyNotConfiguredError
from vaultmig.parser import parse_note
from vaultmig.report import SUMMARY_SCHEMA, entry_type_counts, summarize_notes


def _write_note(directory: Path, name: str, content: str) -> Path:
    path = directory / f"{name}.md"
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


@pytest.fixture()
def journal(tmp_path: Path) -> Path:
    return _write_note(tmp_path, "Journal", """\
        # Tasks
        ## Fix login
        From [[Origin#^spawn-task-1a2b3c|spawn]] in [[Origin]]

        Steps here.
        ## Write docs
        Draft.
        # Ideas
        ## Dark mode
        Spawn [[Dark mode spec]] ^spawn-idea-0a0a0a
    """)


class TestSummarizeNotes:
    def test_one_row_per_entry(self, journal: Path):
        summary = summarize_notes([parse_note(journal)])
        assert summary.columns == list(SUMMARY_SCHEMA)
        assert summary.height == 3
        assert summary["name"].to_list() == ["Fix login", "Write docs", "Dark mode"]

    def test_spawn_counts(self, journal: Path):
        summary = summarize_notes([parse_note(journal)])
        assert summary["spawned"].to_list() == [1, 0, 0]
        assert summary["spawning"].to_list() == [0, 0, 1]
        assert summary["links"].to_list() == [2, 0, 1]

    def test_empty(self):
        summary = summarize_notes([])
        assert summary.height == 0
        assert summary.columns == list(SUMMARY_SCHEMA)

    def test_failures_are_collected(self, tmp_path: Path, journal: Path):
        broken = _write_note(tmp_path, "Broken", "# Tasks\nOrphan.\n")
        failures = []
        summary = summarize_notes([parse_note(broken), parse_note(journal)], failures=failures)
        assert summary.height == 3
        assert [(path, type(exc)) for path, exc in failures] == [(broken, LegacyNotConfiguredError)]

    def test_failures_raise_without_a_list(self, tmp_path: Path):
        broken = _write_note(tmp_path, "Broken", "# Tasks\nOrphan.\n")
        with pytest.raises(LegacyNotConfiguredError):
            summarize_notes([parse_note(broken)])


class TestEntryTypeCounts:
    def test_counts(self, journal: Path):
        counts = entry_type_counts(summarize_notes([parse_note(journal)]))
        assert counts.rows() == [("Tasks", 2), ("Ideas", 1)]
