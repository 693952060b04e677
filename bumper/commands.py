"""Per-group external commands.

Each release group delegates version storage and changelog writing to
commands configured in .bumper/config.toml. Parameters are passed through
environment variables:

- BUMPER_GROUP: always set to the group name.
- BUMPER_GROUP_NEXT_VERSION: the version being set (next_cmd, changelog_cmd).
- BUMPER_GROUP_VERSION: the version to show notes for (cat_cmd).

The changelog command additionally receives ``--group <name>`` followed by
one ``--major``/``--minor``/``--patch <entry>`` pair per changelog entry.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Protocol

import semver

from .config import ReleaseGroup
from .errors import CommandError
from .models import ReleaseGroupStatus
from .shell import run
from .versions import parse_version


class GroupCommands(Protocol):
    """What the workflows need from a release group's version storage."""

    def get_current_version(self) -> semver.Version: ...

    def set_next_version(self, version: str) -> None: ...

    def amend_changelog(self, version: str, status: ReleaseGroupStatus) -> None: ...

    def get_release_notes(self, version: str) -> None: ...


def changelog_args(group: str, status: ReleaseGroupStatus) -> list[str]:
    """Build the flags passed to a group's changelog command."""
    args = ["--group", group]
    for flag, logs in (
        ("--major", status.major_logs),
        ("--minor", status.minor_logs),
        ("--patch", status.patch_logs),
    ):
        for entry in logs:
            args.extend([flag, entry.content])
    return args


class SubprocessCommands:
    """GroupCommands implementation that runs the configured executables."""

    def __init__(
        self, group: ReleaseGroup, cwd: Path, timeout: float | None = None
    ) -> None:
        self.group = group
        self.cwd = cwd
        self.timeout = timeout

    def _run(
        self,
        field: str,
        extra_args: list[str] | None = None,
        env: dict[str, str] | None = None,
        capture: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        argv = getattr(self.group, field)
        if not argv:
            raise CommandError(self.group.name, f"no {field} defined for release group")

        full_argv = [*argv, *(extra_args or [])]
        command = " ".join(argv)
        try:
            result = run(
                *full_argv,
                cwd=self.cwd,
                env={"BUMPER_GROUP": self.group.name, **(env or {})},
                capture=capture,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise CommandError(self.group.name, f"{command}: executable not found") from e
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                self.group.name, f"{command}: timed out after {self.timeout}s"
            ) from e

        if result.returncode != 0:
            raise CommandError(
                self.group.name,
                f"{command}: exited with code {result.returncode}",
                returncode=result.returncode,
            )
        return result

    def get_current_version(self) -> semver.Version:
        """Run current_cmd and parse its stdout.

        Raises:
            CommandError: If the command fails.
            VersionError: If stdout is not a semantic version.
        """
        result = self._run("current_cmd", capture=True)
        return parse_version(result.stdout or "")

    def set_next_version(self, version: str) -> None:
        self._run("next_cmd", env={"BUMPER_GROUP_NEXT_VERSION": version})

    def amend_changelog(self, version: str, status: ReleaseGroupStatus) -> None:
        self._run(
            "changelog_cmd",
            extra_args=changelog_args(self.group.name, status),
            env={"BUMPER_GROUP_NEXT_VERSION": version},
        )

    def get_release_notes(self, version: str) -> None:
        self._run("cat_cmd", env={"BUMPER_GROUP_VERSION": version})
