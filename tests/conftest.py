"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
import semver

from bumper.config import Config, ReleaseGroup
from bumper.errors import CommandError
from bumper.models import CommitInfo, ReleaseGroupStatus
from bumper.pipeline import Workspace


class FakeCommands:
    """In-memory GroupCommands that records every call."""

    def __init__(self, version: str = "1.2.3", fail_on: str | None = None) -> None:
        self.version = version
        self.fail_on = fail_on
        self.calls: list[tuple] = []

    def _maybe_fail(self, name: str) -> None:
        if self.fail_on == name:
            raise CommandError("fake", f"{name} failed", returncode=1)

    def get_current_version(self) -> semver.Version:
        self._maybe_fail("get_current_version")
        return semver.Version.parse(self.version)

    def set_next_version(self, version: str) -> None:
        self._maybe_fail("set_next_version")
        self.calls.append(("set_next_version", version))
        self.version = version

    def amend_changelog(self, version: str, status: ReleaseGroupStatus) -> None:
        self._maybe_fail("amend_changelog")
        self.calls.append(("amend_changelog", version, status))

    def get_release_notes(self, version: str) -> None:
        self.calls.append(("get_release_notes", version))


class FakeHistory:
    """HistoryProvider with a fixed answer per file name."""

    def __init__(
        self,
        root: Path,
        commits: dict[str, CommitInfo] | None = None,
        shallow: bool = False,
    ) -> None:
        self.root = root
        self.commits = commits or {}
        self.shallow = shallow
        self.deepened: list[int] = []

    def introducing_commit(self, path: Path) -> CommitInfo | None:
        return self.commits.get(Path(path).name)

    def is_shallow(self) -> bool:
        return self.shallow

    def deepen(self, by: int) -> None:
        self.deepened.append(by)


def make_group(name: str) -> ReleaseGroup:
    return ReleaseGroup(
        name=name,
        current_cmd=["current"],
        next_cmd=["next"],
        changelog_cmd=["changelog"],
        cat_cmd=["cat"],
    )


def write_bump(root: Path, name: str, front: str, body: str = "A change.") -> Path:
    """Write .bumper/bump-<name>.md with the given front matter lines."""
    path = root / ".bumper" / f"bump-{name}.md"
    path.write_text(f"---\n{front}---\n\n{body}\n")
    return path


@pytest.fixture
def bumper_root(tmp_path: Path) -> Path:
    """An initialized workspace directory with an empty .bumper/."""
    (tmp_path / ".bumper").mkdir()
    return tmp_path


@pytest.fixture
def fake_commands() -> dict[str, FakeCommands]:
    return {"api": FakeCommands("1.2.3"), "web": FakeCommands("0.4.0")}


@pytest.fixture
def workspace(bumper_root: Path, fake_commands: dict[str, FakeCommands]) -> Workspace:
    """A workspace with groups api and web, no git history and fake commands."""
    return Workspace(
        root=bumper_root,
        config=Config(groups=[make_group("api"), make_group("web")]),
        history=None,
        commands_for=lambda group: fake_commands[group.name],
    )


@pytest.fixture
def config_toml() -> str:
    return """\
command_timeout = 30

[[groups]]
name = "api"
display_name = "API"
current_cmd = ["./version.sh", "get"]
next_cmd = ["./version.sh", "set"]
changelog_cmd = ["./changelog.sh"]
cat_cmd = ["./notes.sh"]

[[groups]]
name = "web"
current_cmd = ["./web.sh", "get"]
next_cmd = ["./web.sh", "set"]
changelog_cmd = ["./web.sh", "log"]
"""
