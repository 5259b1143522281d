"""Settings loader.

Settings live in an optional ``vaultmig.toml`` at the vault root::

    [vaultmig]
    dry_run            = false
    skip_invalid_links = true
    exclude            = [".obsidian", ".trash", ".git", "templates"]
    log_file           = "vaultmig.log"

The ``[vaultmig]`` table may be omitted and the keys written at top level.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from vaultmig.cluster import DEFAULT_EXCLUDE
from vaultmig.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "vaultmig.toml"

_KNOWN = {"dry_run", "skip_invalid_links", "exclude", "log_file"}


@dataclass
class Settings:
    dry_run: bool = False
    skip_invalid_links: bool = False
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    log_file: Path | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        table = data.get("vaultmig", data)
        if not isinstance(table, dict):
            raise ConfigError("[vaultmig] must be a table")

        for key in ("dry_run", "skip_invalid_links"):
            if key in table and not isinstance(table[key], bool):
                raise ConfigError(f"{key} must be a boolean, got {table[key]!r}")

        exclude = table.get("exclude", list(DEFAULT_EXCLUDE))
        if not isinstance(exclude, list) or not all(isinstance(name, str) for name in exclude):
            raise ConfigError(f"exclude must be a list of folder names, got {exclude!r}")

        log_file = table.get("log_file")
        if log_file is not None and not isinstance(log_file, str):
            raise ConfigError(f"log_file must be a path string, got {log_file!r}")

        return cls(
            dry_run=table.get("dry_run", False),
            skip_invalid_links=table.get("skip_invalid_links", False),
            exclude=exclude,
            log_file=Path(log_file) if log_file else None,
            extra={k: v for k, v in table.items() if k not in _KNOWN},
        )


def load_settings(path: Path | None = None, vault_dir: Path | None = None) -> Settings:
    """Read *path*, else ``vault_dir/vaultmig.toml`` if present, else defaults."""
    if path is None and vault_dir is not None:
        candidate = Path(vault_dir) / CONFIG_FILENAME
        if candidate.is_file():
            path = candidate
    if path is None:
        return Settings()

    try:
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    settings = Settings.from_dict(data)
    logger.debug("Loaded settings from %s", path)
    return settings
