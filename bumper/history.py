"""Source history resolution for bump files.

Each bump file is timestamped with the commit that introduced it, so that
changelog entries can be ordered by when the change landed rather than by
file name. CI checkouts are often shallow; when an introducing commit lies
outside the fetched range the history is deepened in fixed-size batches
until either every file resolves or the retry ceiling is hit.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .errors import GitError
from .models import CommitInfo
from .shell import git, warn


class HistoryProvider(Protocol):
    """Read-only view of a repository's history, as needed by resolve_history."""

    root: Path

    def introducing_commit(self, path: Path) -> CommitInfo | None: ...

    def is_shallow(self) -> bool: ...

    def deepen(self, by: int) -> None: ...


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds the shallow-clone deepening loop.

    Attributes:
        max_attempts: Resolution passes before giving up. At most
            max_attempts - 1 deepens happen between them.
        batch_size: Commits fetched per deepen.
    """

    max_attempts: int = 10
    batch_size: int = 50


class GitHistory:
    """HistoryProvider backed by the git command line."""

    def __init__(self, root: Path) -> None:
        self.root = root

    @classmethod
    def open(cls, directory: Path) -> GitHistory | None:
        """Open the repository containing directory.

        Returns None when directory is not inside a git work tree.
        """
        toplevel = git("rev-parse", "--show-toplevel", cwd=directory, check=False)
        if not toplevel:
            return None
        return cls(Path(toplevel).resolve())

    def _shallow_boundaries(self) -> set[str]:
        shallow_file = git("rev-parse", "--git-path", "shallow", cwd=self.root)
        path = Path(shallow_file)
        if not path.is_absolute():
            path = self.root / path
        if not path.exists():
            return set()
        return {line.strip() for line in path.read_text().splitlines() if line.strip()}

    def introducing_commit(self, path: Path) -> CommitInfo | None:
        """Find the earliest commit reachable from HEAD that added path.

        A shallow boundary commit has no parent locally, so git reports every
        file in it as added. Such a commit is not accepted as the introducing
        commit; None is returned so the caller can deepen and retry.
        """
        rel = Path(path).resolve().relative_to(self.root).as_posix()
        out = git(
            "log",
            "--diff-filter=A",
            "--format=%H %ct",
            "HEAD",
            "--",
            rel,
            cwd=self.root,
            check=False,
        )
        if not out:
            return None

        sha, _, when = out.splitlines()[-1].partition(" ")
        if sha in self._shallow_boundaries():
            return None
        return CommitInfo(sha=sha, timestamp=int(when))

    def is_shallow(self) -> bool:
        return git("rev-parse", "--is-shallow-repository", cwd=self.root) == "true"

    def deepen(self, by: int) -> None:
        print(f"  Deepening shallow clone by {by} commits")
        git("fetch", "--deepen", str(by), cwd=self.root)


def resolve_history(
    paths: Iterable[Path],
    provider: HistoryProvider | None,
    policy: RetryPolicy = RetryPolicy(),
) -> dict[Path, CommitInfo]:
    """Map each path to the commit that introduced it.

    Best effort: paths that cannot be resolved within the retry policy are
    left out of the result with a warning. A failed deepen (offline, no
    remote) ends the retries early. Callers treat a missing entry as
    "no timestamp".

    Args:
        paths: Files to resolve.
        provider: Repository history, or None when no repository is available.
        policy: Deepening bounds for shallow clones.

    Returns:
        Map of path → introducing commit.
    """
    pending = list(paths)
    if provider is None or not pending:
        return {}

    resolved: dict[Path, CommitInfo] = {}
    for attempt in range(1, policy.max_attempts + 1):
        still_pending: list[Path] = []
        for path in pending:
            commit = provider.introducing_commit(path)
            if commit is None:
                still_pending.append(path)
            else:
                resolved[path] = commit
        pending = still_pending

        if not pending or attempt == policy.max_attempts or not provider.is_shallow():
            break
        try:
            provider.deepen(policy.batch_size)
        except GitError as e:
            warn(f"could not deepen shallow clone: {e}")
            break

    for path in pending:
        warn(f"could not resolve git history for {path}")

    return resolved
