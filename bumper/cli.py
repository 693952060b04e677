"""CLI entry point for bumper."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from bumper import pipeline
from bumper.config import config_path, initialize
from bumper.errors import BumperError, InvalidConfigError


class OperationFailed(click.ClickException):
    """Reported after the specific cause has already been printed."""

    def __init__(self) -> None:
        super().__init__("operation failed")


@contextmanager
def reporting() -> Iterator[None]:
    """Print a workflow error's cause, then fail the command."""
    try:
        yield
    except InvalidConfigError as e:
        click.echo(str(e), err=True)
        raise OperationFailed() from e
    except BumperError as e:
        click.echo(f"ERROR: {e}", err=True)
        raise OperationFailed() from e


def dir_option(f):
    return click.option(
        "--dir",
        "directory",
        type=click.Path(file_okay=False, path_type=Path),
        default=".",
        show_default=True,
        help="Directory inside the workspace.",
    )(f)


def group_option(f):
    return click.option(
        "--group",
        required=True,
        envvar="BUMPER_GROUP",
        help="Release group name.",
    )(f)


@click.group()
@click.version_option(package_name="bumper")
def cli() -> None:
    """Versioning and changelog orchestration for monorepos."""


@cli.command()
@dir_option
def init(directory: Path) -> None:
    """Create a .bumper workspace in the given directory."""
    if initialize(directory):
        click.echo(f"✓ Wrote {config_path(directory)}")
    else:
        click.echo(f"{config_path(directory)} already exists")


@cli.command()
@dir_option
@click.option("--group", "groups", multiple=True, help="Release group to bump (repeatable).")
@click.option("--major", "level", flag_value="major", help="Bump the major version.")
@click.option("--minor", "level", flag_value="minor", help="Bump the minor version.")
@click.option("--patch", "level", flag_value="patch", help="Bump the patch version.")
@click.option("-m", "--message", default="", help="Changelog entry for the bump.")
@click.option("--empty", is_flag=True, help="Create an empty bump file (for CI checks).")
def bump(directory: Path, groups: tuple[str, ...], level: str | None, message: str, empty: bool) -> None:
    """Record a pending version bump for one or more release groups."""
    with reporting():
        ws = pipeline.Workspace.open(directory)
        path = pipeline.create_bump(ws, groups, level or "", message, empty=empty)
    click.echo(f"Created bump file: {path}")


@cli.command()
@dir_option
def commit(directory: Path) -> None:
    """Commit pending version bumps."""
    with reporting():
        ws = pipeline.Workspace.open(directory)
        pipeline.commit(ws)


@cli.command(name="next")
@dir_option
@group_option
def next_(directory: Path, group: str) -> None:
    """Print the next version of a release group."""
    with reporting():
        ws = pipeline.Workspace.open(directory)
        version = pipeline.next_version(ws, group)
    if version is None:
        click.echo(f"No pending version bump found for {group}", err=True)
        return
    click.echo(version)


@cli.command()
@dir_option
@group_option
def current(directory: Path, group: str) -> None:
    """Print the current version of a release group."""
    with reporting():
        ws = pipeline.Workspace.open(directory)
        click.echo(pipeline.current_version(ws, group))


@cli.command()
@dir_option
@group_option
@click.option(
    "--version",
    "version",
    required=True,
    envvar="BUMPER_GROUP_VERSION",
    help="Version to show release notes for.",
)
def cat(directory: Path, group: str, version: str) -> None:
    """Show release notes for a given version."""
    with reporting():
        ws = pipeline.Workspace.open(directory)
        pipeline.release_notes(ws, group, version)


@cli.group()
def pre() -> None:
    """Manage prerelease versions."""


@pre.command()
@dir_option
@click.argument("group")
@click.option("--tag", required=True, help="Prerelease tag (e.g., alpha, beta, rc).")
def enter(directory: Path, group: str, tag: str) -> None:
    """Enter prerelease mode for a release group."""
    with reporting():
        ws = pipeline.Workspace.open(directory)
        pipeline.enter_prerelease(ws, group, tag)


@pre.command(name="exit")
@dir_option
@click.argument("group")
def exit_(directory: Path, group: str) -> None:
    """Exit prerelease mode and graduate to a stable release."""
    with reporting():
        ws = pipeline.Workspace.open(directory)
        pipeline.exit_prerelease(ws, group)


@pre.command()
@dir_option
@click.argument("group", required=False)
def status(directory: Path, group: str | None) -> None:
    """Show the current prerelease state."""
    with reporting():
        ws = pipeline.Workspace.open(directory)
        for line in pipeline.prerelease_status(ws, group):
            click.echo(line)
