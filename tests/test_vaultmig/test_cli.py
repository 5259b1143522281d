"""CLI tests driven through click's CliRunner."""

import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from vaultmig.cli import cli
from vaultmig.config import CONFIG_FILENAME


def _write_note(directory: Path, name: str, content: str) -> Path:
    path = directory / f"{name}.md"
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def vault(tmp_path: Path) -> Path:
    (tmp_path / ".obsidian").mkdir()
    _write_note(tmp_path, "List", "*   a\n*   b\n")
    _write_note(tmp_path, "Journal", """\
        # Tasks

        ## Fix login

        Steps here.

        ## Write docs

        Draft.
    """)
    return tmp_path


# ---------------------------------------------------------------------------
# writeback / fix / diff
# ---------------------------------------------------------------------------


class TestWriteback:
    def test_rewrites_vault(self, runner: CliRunner, vault: Path):
        result = runner.invoke(cli, ["writeback", str(vault)])
        assert result.exit_code == 0, result.output
        assert "rewritten" in result.output
        assert (vault / "List.md").read_text(encoding="utf-8") == "- a\n- b\n"

    def test_dry_run_flag(self, runner: CliRunner, vault: Path):
        result = runner.invoke(cli, ["writeback", str(vault), "--dry-run"])
        assert result.exit_code == 0, result.output
        assert "would be rewritten" in result.output
        assert (vault / "List.md").read_text(encoding="utf-8") == "*   a\n*   b\n"

    def test_dry_run_from_settings(self, runner: CliRunner, vault: Path):
        (vault / CONFIG_FILENAME).write_text("[vaultmig]\ndry_run = true\n", encoding="utf-8")
        result = runner.invoke(cli, ["writeback", str(vault)])
        assert result.exit_code == 0, result.output
        assert (vault / "List.md").read_text(encoding="utf-8") == "*   a\n*   b\n"

    def test_not_a_vault(self, runner: CliRunner, tmp_path: Path):
        result = runner.invoke(cli, ["writeback", str(tmp_path)])
        assert result.exit_code == 2
        assert "not an Obsidian vault" in result.output

    def test_invalid_config(self, runner: CliRunner, vault: Path):
        config = vault / "broken.toml"
        config.write_text("dry_run = \n", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(config), "writeback", str(vault)])
        assert result.exit_code == 1
        assert "Invalid TOML" in result.output


class TestFixAndDiff:
    def test_fix_prints_rewritten_note(self, runner: CliRunner, vault: Path):
        result = runner.invoke(cli, ["fix", str(vault / "List.md")])
        assert result.exit_code == 0
        assert result.output == "- a\n- b\n"
        assert (vault / "List.md").read_text(encoding="utf-8") == "*   a\n*   b\n"

    def test_diff(self, runner: CliRunner, vault: Path, tmp_path_factory: pytest.TempPathFactory):
        new = tmp_path_factory.mktemp("new") / "List.md"
        new.write_text("- a\n- b\n", encoding="utf-8")
        result = runner.invoke(cli, ["diff", str(vault / "List.md"), str(new)])
        assert result.exit_code == 0
        assert "-*   a" in result.output
        assert "+- a" in result.output

    def test_fix_of_undecodable_note(self, runner: CliRunner, vault: Path):
        binary = vault / "Binary.md"
        binary.write_bytes(b"\xff\xfe bad\n")
        result = runner.invoke(cli, ["fix", str(binary)])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# extract / summarize
# ---------------------------------------------------------------------------


class TestExtract:
    def test_extract(self, runner: CliRunner, vault: Path):
        result = runner.invoke(cli, ["extract", str(vault)])
        assert result.exit_code == 0, result.output
        assert "extracted" in result.output
        assert (vault / "Journal" / "tasks" / "Write docs.md").exists()

    def test_failures_exit_non_zero(self, runner: CliRunner, vault: Path):
        _write_note(vault, "Broken", "# Tasks\n\nOrphan content.\n")
        result = runner.invoke(cli, ["extract", str(vault)])
        assert result.exit_code == 1
        assert "Failures" in result.output
        assert (vault / "Journal" / "Journal.md").exists()


class TestSummarize:
    def test_vault_table(self, runner: CliRunner, vault: Path):
        result = runner.invoke(cli, ["summarize", str(vault)])
        assert result.exit_code == 0, result.output
        assert "Legacy entries (2)" in result.output
        assert "Per type" in result.output

    def test_undecodable_note_is_reported(self, runner: CliRunner, vault: Path):
        (vault / "Binary.md").write_bytes(b"\xff\xfe bad\n")
        result = runner.invoke(cli, ["summarize", str(vault)])
        assert result.exit_code == 1
        assert "Legacy entries (2)" in result.output

    def test_single_note(self, runner: CliRunner, vault: Path):
        result = runner.invoke(cli, ["summarize", str(vault), str(vault / "Journal.md")])
        assert result.exit_code == 0, result.output
        assert '"slug": "Journal"' in result.output

    def test_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "vaultmig" in result.output
