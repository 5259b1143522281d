"""CLI entrypoint for vaultmig."""

from __future__ import annotations

import difflib
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from vaultmig import __version__
from vaultmig.cluster import ObsidianVaultPath
from vaultmig.config import Settings, load_settings
from vaultmig.errors import MigrationError
from vaultmig.extract import extract_vault
from vaultmig.index import VaultIndex
from vaultmig.parser import parse_note, read_note_text
from vaultmig.report import entry_type_counts, summarize_notes
from vaultmig.writeback import BatchResult, writeback_paths, writeback_text

logger = logging.getLogger("vaultmig")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _setup_logging(verbose: int) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


def _add_log_file(path: Path) -> None:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)


def _load(ctx: click.Context, vault: Path) -> tuple[Settings, VaultIndex]:
    """Validate *vault*, read its settings and index it."""
    if ObsidianVaultPath.maybe(vault) is None:
        raise click.BadParameter(f"'{vault}' is not an Obsidian vault (no .obsidian folder).", param_hint="VAULT")
    try:
        settings = load_settings(ctx.obj.get("config"), vault)
    except MigrationError as exc:
        raise click.ClickException(str(exc)) from exc
    if settings.log_file is not None:
        _add_log_file(settings.log_file if settings.log_file.is_absolute() else vault / settings.log_file)
    try:
        index = VaultIndex(vault, settings.exclude).build()
    except MigrationError as exc:
        raise click.ClickException(f"Cannot index {vault}: {exc}") from exc
    return settings, index


def _report(console: Console, action: str, result: BatchResult, dry_run: bool) -> None:
    verb = f"would be {action}" if dry_run else action
    console.print(f"[bold]{len(result.changed)}[/bold] {verb}, {len(result.unchanged)} unchanged, "
                  f"[red]{len(result.failed)}[/red] failed")
    if result.failed:
        table = Table(title="Failures")
        table.add_column("Path")
        table.add_column("Kind", style="red")
        table.add_column("Message")
        for failure in result.failed:
            table.add_row(str(failure.path), failure.kind, failure.message)
        console.print(table)
        sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="vaultmig")
@click.option("-v", "--verbose", count=True, help="-v: debug logging")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (defaults to VAULT/vaultmig.toml when present)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: int, config: Path | None) -> None:
    """vaultmig - migrate an Obsidian vault to cluster notes.

    Rewrite notes in Obsidian's own formatting and split legacy journal
    entries out into peripheral notes.
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    _setup_logging(verbose)


@cli.command()
@click.argument("vault", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--dry-run", is_flag=True, help="Report what would change without writing")
@click.pass_context
def writeback(ctx: click.Context, vault: Path, dry_run: bool) -> None:
    """Parse and rewrite every note of VAULT."""
    settings, index = _load(ctx, vault)
    dry_run = dry_run or settings.dry_run
    result = writeback_paths(index.note_paths(), dry_run=dry_run)
    _report(Console(), "rewritten", result, dry_run)


@cli.command()
@click.argument("vault", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--dry-run", is_flag=True, help="Report what would change without writing")
@click.pass_context
def extract(ctx: click.Context, vault: Path, dry_run: bool) -> None:
    """Split legacy journal entries of VAULT into peripheral notes."""
    settings, index = _load(ctx, vault)
    dry_run = dry_run or settings.dry_run
    result = extract_vault(index, dry_run=dry_run, skip_invalid_links=settings.skip_invalid_links)
    _report(Console(), "extracted", result, dry_run)


@cli.command()
@click.argument("vault", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("note", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def summarize(ctx: click.Context, vault: Path, note: Path | None) -> None:
    """Table of the legacy entries in VAULT, or everything found in NOTE."""
    settings, index = _load(ctx, vault)
    console = Console()

    if note is not None:
        try:
            console.print_json(data=parse_note(note, skip_invalid_links=settings.skip_invalid_links).to_dict())
        except MigrationError as exc:
            logger.error("%s: %s: %s", note, exc.kind, exc)
            sys.exit(1)
        return

    failures: list[tuple[Path, MigrationError]] = []
    notes = []
    for path in index.non_peripheral_note_paths():
        try:
            notes.append(parse_note(path, skip_invalid_links=settings.skip_invalid_links))
        except MigrationError as exc:
            logger.error("%s: %s: %s", path, exc.kind, exc)
            failures.append((path, exc))
    summary = summarize_notes(notes, failures=failures)

    table = Table(title=f"Legacy entries ({summary.height})")
    for column in summary.columns:
        table.add_column(column, justify="right" if summary[column].dtype.is_numeric() else "left")
    for row in summary.iter_rows():
        table.add_row(*(str(value) for value in row))
    console.print(table)

    counts = Table(title="Per type")
    counts.add_column("type")
    counts.add_column("entries", justify="right")
    for entry_type, entries in entry_type_counts(summary).iter_rows():
        counts.add_row(entry_type, str(entries))
    console.print(counts)

    if failures:
        sys.exit(1)


@cli.command()
@click.argument("note", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def fix(note: Path) -> None:
    """Print NOTE as writeback would write it."""
    try:
        fixed = writeback_text(read_note_text(note))
    except MigrationError as exc:
        logger.error("%s: %s: %s", note, exc.kind, exc)
        sys.exit(1)
    click.echo(fixed, nl=False)


@cli.command()
@click.argument("old", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("new", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def diff(old: Path, new: Path) -> None:
    """Coloured line diff of OLD against NEW."""
    console = Console()
    try:
        old_text, new_text = read_note_text(old), read_note_text(new)
    except MigrationError as exc:
        logger.error("%s: %s", exc.kind, exc)
        sys.exit(1)
    lines = difflib.unified_diff(
        old_text.splitlines(keepends=True),
        new_text.splitlines(keepends=True),
        fromfile=str(old),
        tofile=str(new),
    )
    for line in lines:
        style = ""
        if line.startswith("+") and not line.startswith("+++"):
            style = "green"
        elif line.startswith("-") and not line.startswith("---"):
            style = "red"
        elif line.startswith("@@"):
            style = "cyan"
        console.print(Text(line.rstrip("\n"), style=style), highlight=False)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
