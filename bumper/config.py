"""Workspace discovery and release group configuration.

A workspace is any directory holding a ``.bumper`` directory. The release
groups live in ``.bumper/config.toml``::

    command_timeout = 60

    [[groups]]
    name = "api"
    display_name = "API"
    current_cmd = ["./scripts/version.sh", "get"]
    next_cmd = ["./scripts/version.sh", "set"]
    changelog_cmd = ["./scripts/changelog.sh"]
    cat_cmd = ["./scripts/notes.sh"]
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError, GroupNotFoundError, InvalidConfigError, WorkspaceNotFoundError
from .toml import get_group_tables, load_toml

BUMPER_DIR = ".bumper"
REQUIRED_COMMANDS = ("current_cmd", "next_cmd", "changelog_cmd")


def bumper_dir(base: Path) -> Path:
    return base / BUMPER_DIR


def config_path(base: Path) -> Path:
    return bumper_dir(base) / "config.toml"


def prerelease_state_path(base: Path) -> Path:
    return bumper_dir(base) / "prerelease.toml"


def prerelease_bump_dir(base: Path) -> Path:
    return bumper_dir(base) / "prerelease"


def bump_path(base: Path, suffix: str) -> Path:
    return bumper_dir(base) / f"bump-{suffix}.md"


class ReleaseGroup(BaseModel):
    """An independently versioned unit of the workspace.

    Attributes:
        name: Unique group name, as referenced by bump records.
        display_name: Human-friendly name for changelogs.
        current_cmd: Prints the current version on stdout.
        next_cmd: Sets the version given in BUMPER_GROUP_NEXT_VERSION.
        changelog_cmd: Amends the changelog; receives --group and repeated
            --major/--minor/--patch entries.
        cat_cmd: Prints release notes for BUMPER_GROUP_VERSION.
    """

    name: str = ""
    display_name: str = ""
    current_cmd: list[str] = Field(default_factory=list)
    next_cmd: list[str] = Field(default_factory=list)
    changelog_cmd: list[str] = Field(default_factory=list)
    cat_cmd: list[str] = Field(default_factory=list)


class Config(BaseModel):
    """Release group configuration for a workspace."""

    groups: list[ReleaseGroup] = Field(default_factory=list)
    command_timeout: float | None = None

    def index_groups(self) -> dict[str, ReleaseGroup]:
        return {g.name: g for g in self.groups}

    def group_names(self) -> set[str]:
        return {g.name for g in self.groups}

    def get_group(self, name: str) -> ReleaseGroup:
        """Return the named group.

        Raises:
            GroupNotFoundError: If no group has that name.
        """
        group = self.index_groups().get(name)
        if group is None:
            raise GroupNotFoundError(f"release group {name!r} not found")
        return group


def validate_config(cfg: Config) -> list[str]:
    """Collect every violation in a config rather than stopping at the first."""
    violations: list[str] = []
    seen: set[str] = set()

    for i, group in enumerate(cfg.groups):
        label = f"groups[{i}]"
        if not group.name.strip():
            violations.append(f"{label}: name must not be empty")
        else:
            label = f"group {group.name!r}"
            if group.name in seen:
                violations.append(f"{label}: duplicate group name")
            seen.add(group.name)

        for field in REQUIRED_COMMANDS:
            if not getattr(group, field):
                violations.append(f"{label}: {field} is required")

    if cfg.command_timeout is not None and cfg.command_timeout <= 0:
        violations.append("command_timeout must be positive")

    return violations


def find_workspace(start: Path | str) -> Path:
    """Walk up from start to the first directory containing .bumper/.

    A .bumper entry that is not a directory is ignored.

    Raises:
        WorkspaceNotFoundError: If no ancestor holds a .bumper directory.
    """
    current = Path(start).resolve()
    for candidate in (current, *current.parents):
        if bumper_dir(candidate).is_dir():
            return candidate
    raise WorkspaceNotFoundError(f"{BUMPER_DIR} directory not found above {current}")


def initialize(base: Path) -> bool:
    """Create .bumper/ and an empty config.toml.

    An existing config is never overwritten.

    Returns:
        True if a new config was written.
    """
    bumper_dir(base).mkdir(parents=True, exist_ok=True)
    path = config_path(base)
    try:
        with path.open("x") as fh:
            fh.write(tomlkit.dumps(tomlkit.document()))
    except FileExistsError:
        return False
    return True


def load_config(base: Path) -> Config:
    """Load and validate the workspace config.

    Raises:
        ConfigError: If the file is missing or not valid TOML.
        InvalidConfigError: With every violation found.
    """
    path = config_path(base)
    doc = load_toml(path)
    data = doc.unwrap()
    data["groups"] = get_group_tables(doc)

    try:
        cfg = Config.model_validate(data)
    except ValidationError as e:
        raise InvalidConfigError(
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e

    violations = validate_config(cfg)
    if violations:
        raise InvalidConfigError(violations)
    return cfg
