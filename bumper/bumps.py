"""Bump record store.

Pending bump records are Markdown files in the workspace's .bumper directory::

    ---
    api: minor
    web: patch
    ---

    Added pagination to the listing endpoints.

The block between the two ``---`` lines is a flat YAML mapping of release
group name to bump level. Records consumed while a group is in a prerelease
train are moved to .bumper/prerelease/ until the train graduates.
"""

from __future__ import annotations

import secrets
from collections.abc import Iterable, Mapping
from pathlib import Path

import yaml

from .config import bump_path, bumper_dir, prerelease_bump_dir
from .errors import ParseError
from .models import BumpRecord

DELIMITER = "---"
BUMP_GLOB = "bump-*.md"
CREATE_ATTEMPTS = 3


def list_pending(workspace: Path) -> list[Path]:
    """List pending bump files, sorted by file name."""
    return sorted(bumper_dir(workspace).glob(BUMP_GLOB))


def list_prerelease(workspace: Path) -> list[Path]:
    """List bump files held for an active prerelease train."""
    return sorted(prerelease_bump_dir(workspace).glob(BUMP_GLOB))


def parse_bump_text(text: str, origin: Path) -> BumpRecord:
    """Split a bump record into its annotation mapping and body.

    Raises:
        ParseError: If the opening or closing delimiter is missing, or the
            annotation block is not a flat YAML mapping.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != DELIMITER:
        raise ParseError(origin, f"front matter must start with {DELIMITER}")

    for i, line in enumerate(lines[1:], start=1):
        if line.rstrip("\r\n") == DELIMITER:
            front, body = lines[1:i], lines[i + 1 :]
            break
    else:
        raise ParseError(origin, f"front matter is not closed with {DELIMITER}")

    block = "".join(front)
    try:
        data = yaml.safe_load(block) if block.strip() else {}
    except yaml.YAMLError as e:
        raise ParseError(origin, f"invalid front matter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ParseError(origin, "front matter must be a mapping of group to level")

    levels: dict[str, str] = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            raise ParseError(origin, f"front matter value for {key!r} must be a string")
        levels[str(key)] = "" if value is None else str(value)

    return BumpRecord(origin=origin, levels=levels, message="".join(body).strip())


def parse_bump_file(path: Path) -> BumpRecord:
    """Read and parse a single bump file."""
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(path, f"not valid UTF-8: {e}") from e
    return parse_bump_text(text, path)


def read_bump_records(paths: Iterable[Path]) -> list[BumpRecord]:
    """Parse every bump file, in the given order.

    The first malformed record aborts the whole read: a partial result
    would understate the version bump.
    """
    return [parse_bump_file(p) for p in paths]


def delete_bumps(paths: Iterable[Path]) -> None:
    for path in paths:
        path.unlink()


def move_pending_to_prerelease(workspace: Path) -> list[Path]:
    """Move every pending bump file into the prerelease holding area.

    Returns:
        The new locations of the moved files.
    """
    holding = prerelease_bump_dir(workspace)
    holding.mkdir(parents=True, exist_ok=True)

    moved: list[Path] = []
    for path in list_pending(workspace):
        dest = holding / path.name
        path.rename(dest)
        moved.append(dest)
    return moved


def list_held(workspace: Path, names: Iterable[str]) -> list[Path]:
    """List the held bump files with the given names that still exist."""
    wanted = set(names)
    return [p for p in list_prerelease(workspace) if p.name in wanted]


def _prune_holding(workspace: Path) -> None:
    holding = prerelease_bump_dir(workspace)
    if holding.is_dir() and not any(holding.iterdir()):
        holding.rmdir()


def delete_held(workspace: Path, names: Iterable[str]) -> None:
    """Delete the named held bump files, leaving the rest of the holding area."""
    delete_bumps(list_held(workspace, names))
    _prune_holding(workspace)


def delete_prerelease(workspace: Path) -> None:
    """Delete held bump files and remove the holding area once it is empty."""
    delete_bumps(list_prerelease(workspace))
    _prune_holding(workspace)


def render_bump(levels: Mapping[str, str], message: str) -> str:
    """Render a bump record in the on-disk format."""
    if not levels:
        return f"{DELIMITER}\n{DELIMITER}\n"
    front = yaml.safe_dump(dict(levels), sort_keys=True, default_flow_style=False)
    return f"{DELIMITER}\n{front}{DELIMITER}\n\n{message.strip()}\n"


def write_bump_file(workspace: Path, levels: Mapping[str, str], message: str) -> Path:
    """Create a new bump file under a fresh random name.

    Creation is exclusive; a name collision is retried with a new name.

    Raises:
        FileExistsError: If every attempt collided.
    """
    content = render_bump(levels, message)
    for _ in range(CREATE_ATTEMPTS):
        path = bump_path(workspace, secrets.token_hex(4))
        try:
            with path.open("x", encoding="utf-8") as fh:
                fh.write(content)
        except FileExistsError:
            continue
        return path

    raise FileExistsError(f"could not pick an unused bump file name in {bumper_dir(workspace)}")
