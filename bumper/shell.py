"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running git and the
configured per-group commands, plus output formatting helpers.
"""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Mapping
from pathlib import Path

from .errors import GitError


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "log", "--format=%H").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise GitError on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., repo detection).

    Returns:
        Stripped stdout from the git command, or "" when check is False and
        git failed.
    """
    try:
        result = subprocess.run(
            ["git", *args], capture_output=True, text=True, cwd=cwd, check=False
        )
    except FileNotFoundError as e:
        if not check:
            return ""
        raise GitError("git executable not found") from e

    if result.returncode != 0:
        if not check:
            return ""
        raise GitError(
            f"git {' '.join(args)} failed with exit code {result.returncode}",
            stderr=result.stderr,
        )
    return result.stdout.strip()


def run(
    *args: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    capture: bool = False,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run an arbitrary command.

    Unless capture is set, stdout streams directly to the terminal so users
    can see what the command prints. stderr always streams through.

    Args:
        *args: Command and arguments (e.g., "./scripts/version.sh", "get").
        cwd: Directory to run in.
        env: Extra environment variables, layered over os.environ.
        capture: Capture stdout instead of streaming it.
        timeout: Seconds before the command is killed.

    Returns:
        CompletedProcess with returncode for checking success.

    Raises:
        FileNotFoundError: If the executable does not exist.
        subprocess.TimeoutExpired: If the command outlives timeout.
    """
    full_env = {**os.environ, **env} if env else None
    return subprocess.run(
        args,
        cwd=cwd,
        env=full_env,
        stdout=subprocess.PIPE if capture else None,
        text=True,
        timeout=timeout,
        check=False,
    )


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a non-fatal warning to stderr."""
    print(f"  Warning: {msg}", file=sys.stderr)

