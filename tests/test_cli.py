"""Tests for the bumper command line."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from conftest import write_bump

from bumper.cli import cli
from bumper.config import config_path
from bumper.pipeline import Workspace


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def opened(workspace: Workspace):
    with patch.object(Workspace, "open", return_value=workspace) as mock_open:
        yield mock_open


class TestInit:
    def test_creates_workspace(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["init", "--dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "Wrote" in result.output
        assert config_path(tmp_path).exists()

    def test_existing(self, runner: CliRunner, tmp_path: Path) -> None:
        runner.invoke(cli, ["init", "--dir", str(tmp_path)])
        result = runner.invoke(cli, ["init", "--dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "already exists" in result.output


class TestBump:
    def test_creates_file(self, runner: CliRunner, opened, workspace: Workspace) -> None:
        result = runner.invoke(cli, ["bump", "--group", "api", "--minor", "-m", "Added paging."])

        assert result.exit_code == 0, result.output
        assert "Created bump file" in result.output
        (path,) = (workspace.root / ".bumper").glob("bump-*.md")
        assert "api: minor" in path.read_text()

    def test_missing_level(self, runner: CliRunner, opened) -> None:
        result = runner.invoke(cli, ["bump", "--group", "api", "-m", "x"])

        assert result.exit_code == 1
        assert "ERROR: unknown bump level" in result.output
        assert "operation failed" in result.output

    def test_empty(self, runner: CliRunner, opened, workspace: Workspace) -> None:
        result = runner.invoke(cli, ["bump", "--empty"])

        assert result.exit_code == 0
        (path,) = (workspace.root / ".bumper").glob("bump-*.md")
        assert path.read_text() == "---\n---\n"


class TestVersionCommands:
    def test_commit(self, runner: CliRunner, opened, workspace: Workspace, fake_commands) -> None:
        write_bump(workspace.root, "a", "api: minor\n")

        result = runner.invoke(cli, ["commit"])

        assert result.exit_code == 0, result.output
        assert "api: 1.2.3 → 1.3.0" in result.output
        assert fake_commands["api"].version == "1.3.0"

    def test_next(self, runner: CliRunner, opened, workspace: Workspace) -> None:
        write_bump(workspace.root, "a", "api: patch\n")

        result = runner.invoke(cli, ["next", "--group", "api"])

        assert result.exit_code == 0
        assert result.output.strip() == "1.2.4"

    def test_next_nothing_pending(self, runner: CliRunner, opened) -> None:
        result = runner.invoke(cli, ["next", "--group", "web"])

        assert result.exit_code == 0
        assert "No pending version bump found for web" in result.output

    def test_group_from_environment(self, runner: CliRunner, opened) -> None:
        result = runner.invoke(cli, ["current"], env={"BUMPER_GROUP": "web"})

        assert result.exit_code == 0
        assert result.output.strip() == "0.4.0"

    def test_unknown_group(self, runner: CliRunner, opened) -> None:
        result = runner.invoke(cli, ["current", "--group", "mobile"])

        assert result.exit_code == 1
        assert "ERROR: release group 'mobile' not found" in result.output

    def test_cat(self, runner: CliRunner, opened, fake_commands) -> None:
        result = runner.invoke(cli, ["cat", "--group", "api", "--version", "1.2.0"])

        assert result.exit_code == 0
        assert fake_commands["api"].calls == [("get_release_notes", "1.2.0")]


class TestPre:
    def test_enter_status_exit(self, runner: CliRunner, opened) -> None:
        result = runner.invoke(cli, ["pre", "enter", "api", "--tag", "beta"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["pre", "status"])
        assert result.output.splitlines() == [
            "api: 1.2.3-beta.1 (tag: beta, from: 1.2.3)",
            "web: not in prerelease",
        ]

        result = runner.invoke(cli, ["pre", "exit", "api"])
        assert result.exit_code == 0
        assert "no changes were made" in result.output

    def test_exit_when_stable(self, runner: CliRunner, opened) -> None:
        result = runner.invoke(cli, ["pre", "exit", "web"])

        assert result.exit_code == 1
        assert "not in prerelease mode" in result.output

    def test_enter_requires_tag(self, runner: CliRunner, opened) -> None:
        result = runner.invoke(cli, ["pre", "enter", "api"])
        assert result.exit_code == 2


def test_outside_workspace(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(cli, ["commit", "--dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "ERROR: .bumper directory not found" in result.output


def test_invalid_config_lists_violations(runner: CliRunner, bumper_root: Path) -> None:
    config_path(bumper_root).write_text('[[groups]]\nname = "api"\n')

    result = runner.invoke(cli, ["commit", "--dir", str(bumper_root)])

    assert result.exit_code == 1
    assert "invalid configuration:" in result.output
    assert "  - group 'api': current_cmd is required" in result.output


def test_commit_runs_group_commands(runner: CliRunner, bumper_root: Path) -> None:
    """End to end: version file and changelog are written by shell commands."""
    (bumper_root / "VERSION").write_text("0.9.0\n")
    config_path(bumper_root).write_text(
        """\
[[groups]]
name = "lib"
current_cmd = ["sh", "-c", "cat VERSION"]
next_cmd = ["sh", "-c", "echo \\"$BUMPER_GROUP_NEXT_VERSION\\" > VERSION"]
changelog_cmd = ["sh", "-c", "echo \\"$BUMPER_GROUP_NEXT_VERSION $*\\" >> CHANGELOG", "changelog"]
"""
    )
    write_bump(bumper_root, "a", "lib: minor\n", "Added streaming.")

    result = runner.invoke(cli, ["commit", "--dir", str(bumper_root)])

    assert result.exit_code == 0, result.output
    assert (bumper_root / "VERSION").read_text().strip() == "0.10.0"
    assert (bumper_root / "CHANGELOG").read_text().strip() == "0.10.0 --group lib --minor Added streaming."
    assert list((bumper_root / ".bumper").glob("bump-*.md")) == []
