"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying the workspace
config, so hand-edited files stay readable and diff-friendly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigError


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file.

    Returns a TOMLDocument that preserves formatting when modified and saved.

    Raises:
        ConfigError: If the file is missing or is not valid TOML.
    """
    try:
        return tomlkit.parse(path.read_text())
    except FileNotFoundError as e:
        raise ConfigError(f"{path}: file not found") from e
    except TOMLKitError as e:
        raise ConfigError(f"{path}: invalid TOML: {e}") from e


def save_toml(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc))


def get_group_tables(doc: tomlkit.TOMLDocument) -> list[dict[str, Any]]:
    """Extract the [[groups]] array of tables as plain dicts.

    Returns an empty list when no groups are declared.
    """
    groups = doc.unwrap().get("groups", [])
    if not isinstance(groups, list) or not all(isinstance(t, dict) for t in groups):
        raise ConfigError("'groups' must be an array of tables")
    return [dict(table) for table in groups]


def get_state_tables(doc: tomlkit.TOMLDocument) -> dict[str, dict[str, Any]]:
    """Extract the [groups.<name>] tables of a prerelease state file."""
    groups = doc.unwrap().get("groups", {})
    if not isinstance(groups, dict):
        raise ConfigError("'groups' must be a table")
    for name, table in groups.items():
        if not isinstance(table, dict):
            raise ConfigError(f"'groups.{name}' must be a table")
    return {str(name): dict(table) for name, table in groups.items()}


def dump_state_tables(groups: dict[str, dict[str, Any]]) -> tomlkit.TOMLDocument:
    """Build a prerelease state document from per-group tables."""
    doc = tomlkit.document()
    outer = tomlkit.table(is_super_table=True)
    for name in sorted(groups):
        table = tomlkit.table()
        for key, value in groups[name].items():
            table[key] = value
        outer[name] = table
    doc["groups"] = outer
    return doc
