"""Unit tests for vaultmig.writeback."""

from pathlib import Path

import pytest

from vaultmig.errors import RenderError
from vaultmig.writeback import BatchResult, writeback_note, writeback_paths


def _write(directory: Path, name: str, content: str) -> Path:
    path = directory / f"{name}.md"
    path.write_text(content, encoding="utf-8")
    return path


class TestWritebackNote:
    def test_rewrites_file(self, tmp_path: Path):
        path = _write(tmp_path, "List", "*   a\n*   b\n")
        assert writeback_note(path) is True
        assert path.read_text(encoding="utf-8") == "- a\n- b\n"

    def test_dry_run_leaves_file(self, tmp_path: Path):
        path = _write(tmp_path, "List", "*   a\n*   b\n")
        assert writeback_note(path, dry_run=True) is True
        assert path.read_text(encoding="utf-8") == "*   a\n*   b\n"

    def test_unchanged_file(self, tmp_path: Path):
        path = _write(tmp_path, "Plain", "# Title\n\nText.\n")
        assert writeback_note(path) is False


class TestWritebackPaths:
    def test_result_buckets(self, tmp_path: Path):
        changed = _write(tmp_path, "List", "*   a\n")
        unchanged = _write(tmp_path, "Plain", "Text.\n")
        result = writeback_paths([changed, unchanged])
        assert result.changed == [changed]
        assert result.unchanged == [unchanged]
        assert result.ok

    def test_failure_is_recorded_and_file_untouched(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        path = _write(tmp_path, "List", "*   a\n")

        def _explode(events):
            raise RenderError("cannot render")

        monkeypatch.setattr("vaultmig.writeback.render_events", _explode)
        result = writeback_paths([path])
        assert not result.ok
        assert [f.to_dict() for f in result.failed] == [
            {"path": str(path), "kind": "RenderError", "message": "cannot render"}
        ]
        assert path.read_text(encoding="utf-8") == "*   a\n"

    def test_unreadable_note_does_not_stop_the_batch(self, tmp_path: Path):
        bad = tmp_path / "Binary.md"
        bad.write_bytes(b"\xff\xfe bad\n")
        good = _write(tmp_path, "List", "*   a\n")
        result = writeback_paths([bad, good])
        assert [(f.path, f.kind) for f in result.failed] == [(bad, "NoteReadError")]
        assert result.changed == [good]
        assert good.read_text(encoding="utf-8") == "- a\n"
        assert bad.read_bytes() == b"\xff\xfe bad\n"

    def test_missing_note_is_a_failure(self, tmp_path: Path):
        result = writeback_paths([tmp_path / "Gone.md"])
        assert [f.kind for f in result.failed] == ["NoteReadError"]

    def test_empty_batch(self):
        assert writeback_paths([]) == BatchResult()
