"""Exceptions raised by bumper.

Every error a workflow can raise derives from BumperError. The CLI prints the
specific cause and then fails with a generic "operation failed".
"""

from __future__ import annotations

from pathlib import Path


class BumperError(Exception):
    """Base class for all bumper errors."""


class WorkspaceNotFoundError(BumperError):
    """No .bumper directory in the start directory or any of its parents."""


class ConfigError(BumperError):
    """The workspace configuration could not be read or written."""


class InvalidConfigError(ConfigError):
    """The configuration has one or more violations.

    All violations are collected before raising so the operator can fix
    them in a single pass.
    """

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__(
            "invalid configuration:\n" + "\n".join(f"  - {v}" for v in self.violations)
        )


class ParseError(BumperError):
    """A bump record could not be parsed."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class VersionError(BumperError, ValueError):
    """A version string is not a valid semantic version."""


class GitError(BumperError):
    """A git invocation failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        self.stderr = stderr
        super().__init__(message)


class CommandError(BumperError):
    """A configured per-group command failed."""

    def __init__(
        self,
        group: str,
        message: str,
        *,
        returncode: int | None = None,
        stderr: str | None = None,
    ) -> None:
        self.group = group
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{group}: {message}")


class GroupNotFoundError(BumperError):
    """A release group name is not declared in the configuration."""


class NotInPrereleaseError(BumperError):
    """A prerelease-only operation was requested for a stable group."""

