"""Workflows: collect → resolve → aggregate → version → changelog.

This module orchestrates the bumper commands:
1. Collect pending bump records from the workspace
2. Timestamp them with the commit that introduced each file
3. Aggregate them per release group
4. Compute each group's next version, stable or prerelease
5. Run the group's commands to set the version and amend the changelog
6. Consume the records and persist the prerelease state

Prerelease state is loaded once per workflow, mutated in memory and saved
only after every dependent step succeeded.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from .aggregate import aggregate, merge_statuses
from .bumps import (
    delete_bumps,
    delete_held,
    delete_prerelease,
    list_held,
    list_pending,
    move_pending_to_prerelease,
    read_bump_records,
    write_bump_file,
)
from .commands import GroupCommands, SubprocessCommands
from .config import Config, ReleaseGroup, find_workspace, load_config
from .errors import BumperError, GroupNotFoundError, NotInPrereleaseError
from .history import GitHistory, HistoryProvider, resolve_history
from .models import BumpLevel, ReleaseGroupStatus, VersionBump
from .prerelease import (
    EnterOutcome,
    PrereleaseState,
    compute_next_version,
    describe_group,
    load_prerelease_state,
    save_prerelease_state,
)
from .shell import step, warn
from .versions import bump_version, stable_version


@dataclass
class Workspace:
    """Everything a workflow needs, resolved once per invocation.

    Attributes:
        root: Directory containing .bumper/.
        config: Validated release group configuration.
        history: Repository history, or None when there is no repository.
        commands_for: Builds the command runner for a release group.
    """

    root: Path
    config: Config
    history: HistoryProvider | None
    commands_for: Callable[[ReleaseGroup], GroupCommands]

    @classmethod
    def open(cls, start: Path | str = ".") -> Workspace:
        """Locate the workspace above start and load its config."""
        root = find_workspace(start)
        config = load_config(root)
        history = GitHistory.open(root)
        if history is None:
            warn(f"git repository not found for {root}; bumps will not be ordered by commit time")
        return cls(
            root=root,
            config=config,
            history=history,
            commands_for=lambda group: SubprocessCommands(group, root, config.command_timeout),
        )

    def group(self, name: str) -> ReleaseGroup:
        return self.config.get_group(name)


def collect_statuses(ws: Workspace, paths: Sequence[Path]) -> dict[str, ReleaseGroupStatus]:
    """Parse, timestamp and aggregate a set of bump files.

    Raises:
        ParseError: If any record is malformed. Nothing is aggregated then.
    """
    if not paths:
        return {}
    records = read_bump_records(paths)
    history = resolve_history(paths, ws.history)
    return aggregate(records, history, ws.config.group_names())


def _level(statuses: dict[str, ReleaseGroupStatus], name: str) -> BumpLevel:
    status = statuses.get(name)
    return status.level if status is not None else BumpLevel.NONE


def _held_statuses(ws: Workspace, state: PrereleaseState, name: str) -> dict[str, ReleaseGroupStatus]:
    """Aggregate the held records consumed by a group's current train."""
    train = state.get(name)
    if train is None:
        return {}
    return collect_statuses(ws, list_held(ws.root, train.held))


def plan_version(
    ws: Workspace,
    state: PrereleaseState,
    group: ReleaseGroup,
    level: BumpLevel,
    accumulated: BumpLevel,
) -> tuple[VersionBump, int | None]:
    """Compute the version a commit would produce for one group.

    Returns:
        Tuple of (version bump, new prerelease counter or None when the
        group is stable).
    """
    current = ws.commands_for(group).get_current_version()
    train = state.get(group.name)
    if train is None:
        new = str(bump_version(current, level))
        return VersionBump(group=group.name, old=str(current), new=new), None

    new, counter = compute_next_version(
        train.from_version, train.tag, train.counter, accumulated, level
    )
    return VersionBump(group=group.name, old=str(current), new=new), counter


def commit(ws: Workspace) -> list[VersionBump]:
    """Consume pending bumps into version bumps and changelog entries.

    Groups are processed in config order. The first failing command aborts
    the remaining groups; records and prerelease state are left untouched
    in that case.

    Returns:
        The version bumps applied.
    """
    step("Collecting pending bumps")

    pending_paths = list_pending(ws.root)
    if not pending_paths:
        print("  No pending version bumps found")
        return []

    state = load_prerelease_state(ws.root)
    pending = collect_statuses(ws, pending_paths)
    print(f"  {len(pending_paths)} bump files")

    step("Committing version bumps")

    applied: list[VersionBump] = []
    trained: list[str] = []
    for group in ws.config.groups:
        level = _level(pending, group.name)
        if level is BumpLevel.NONE:
            continue

        accumulated = _level(_held_statuses(ws, state, group.name), group.name)
        bump, counter = plan_version(ws, state, group, level, accumulated)
        commands = ws.commands_for(group)
        commands.set_next_version(bump.new)
        commands.amend_changelog(bump.new, pending[group.name])

        if counter is not None:
            state.set_counter(group.name, counter)
            trained.append(group.name)
        applied.append(bump)
        print(f"  {bump.group}: {bump.old} → {bump.new}")

    if trained:
        moved = [p.name for p in move_pending_to_prerelease(ws.root)]
        for name in trained:
            state.claim(name, moved)
    else:
        delete_bumps(pending_paths)
    save_prerelease_state(ws.root, state)

    return applied


def next_version(ws: Workspace, name: str) -> str | None:
    """Preview the version the next commit would produce for a group.

    Returns:
        The version, or None when the group has nothing pending.
    """
    group = ws.group(name)
    pending = collect_statuses(ws, list_pending(ws.root))
    level = _level(pending, name)
    if level is BumpLevel.NONE:
        return None

    state = load_prerelease_state(ws.root)
    accumulated = _level(_held_statuses(ws, state, name), name)
    bump, _ = plan_version(ws, state, group, level, accumulated)
    return bump.new


def current_version(ws: Workspace, name: str) -> str:
    return str(ws.commands_for(ws.group(name)).get_current_version())


def release_notes(ws: Workspace, name: str, version: str) -> None:
    ws.commands_for(ws.group(name)).get_release_notes(version)


def enter_prerelease(ws: Workspace, name: str, tag: str) -> EnterOutcome:
    """Put a release group into a prerelease train with the given tag."""
    group = ws.group(name)
    if not tag:
        raise BumperError("prerelease tag must not be empty")

    state = load_prerelease_state(ws.root)
    current = ws.commands_for(group).get_current_version()
    previous = state.get(name)
    outcome = state.enter(name, tag, str(current))

    if outcome is EnterOutcome.ALREADY:
        print(f"Group {name!r} is already in prerelease with tag {tag!r}")
        return outcome
    if outcome is EnterOutcome.SWITCHED and previous is not None:
        print(f"Switching prerelease tag for {name!r} from {previous.tag!r} to {tag!r}")

    save_prerelease_state(ws.root, state)
    print(f"Entered prerelease for {name!r} with tag {tag!r}")
    print(f"  {name}: {describe_group(state, name)}")
    return outcome


def _other_groups(statuses: Iterable[dict[str, ReleaseGroupStatus]], name: str) -> list[str]:
    others: set[str] = set()
    for status_map in statuses:
        others.update(g for g, s in status_map.items() if g != name and s.level is not BumpLevel.NONE)
    return sorted(others)


def _leave_train(ws: Workspace, state: PrereleaseState, name: str) -> None:
    """Drop a group's train and the held files no other train consumed."""
    released = state.exclusive_held(name)
    state.exit(name)
    if state.groups:
        delete_held(ws.root, released)
    else:
        delete_prerelease(ws.root)
    save_prerelease_state(ws.root, state)


def exit_prerelease(ws: Workspace, name: str) -> VersionBump | None:
    """Graduate a group from its prerelease train to a stable release.

    All held and pending bumps for the group are consolidated into a single
    changelog entry for the stable version.

    Returns:
        The stable version bump, or None when the train saw no bumps.

    Raises:
        NotInPrereleaseError: If the group is not in a train.
    """
    group = ws.group(name)
    state = load_prerelease_state(ws.root)
    train = state.get(name)
    if train is None:
        raise NotInPrereleaseError(f"release group {name!r} is not in prerelease mode")

    step(f"Exiting prerelease for {name}")

    pending_paths = list_pending(ws.root)
    accumulated = _held_statuses(ws, state, name)
    pending = collect_statuses(ws, pending_paths)
    merged = merge_statuses(accumulated, pending)

    status = merged.get(name)
    if status is None or status.level is BumpLevel.NONE:
        warn("no bumps were made during prerelease, cleaning up state")
        _leave_train(ws, state, name)
        print(f"Exited prerelease for {name!r} (no changes were made)")
        return None

    prerelease_version, _ = compute_next_version(
        train.from_version,
        train.tag,
        train.counter,
        _level(accumulated, name),
        _level(pending, name),
    )
    stable = stable_version(prerelease_version)

    commands = ws.commands_for(group)
    commands.set_next_version(stable)
    commands.amend_changelog(stable, status)

    others = _other_groups([accumulated, pending], name)
    if others:
        warn(f"bump files consumed by this release also referenced: {', '.join(others)}")
    delete_bumps(pending_paths)
    _leave_train(ws, state, name)

    print(f"Exited prerelease for {name!r}")
    print(f"  Released version: {stable}")
    return VersionBump(group=name, old=prerelease_version, new=stable)


def prerelease_status(ws: Workspace, name: str | None = None) -> list[str]:
    """Describe the prerelease train of one group, or of every group."""
    state = load_prerelease_state(ws.root)
    names = [ws.group(name).name] if name else [g.name for g in ws.config.groups]

    lines: list[str] = []
    for group_name in names:
        entry = state.get(group_name)
        summary = describe_group(state, group_name)
        if entry is not None:
            summary += f" (tag: {entry.tag}, from: {entry.from_version})"
        lines.append(f"{group_name}: {summary}")
    return lines


def create_bump(
    ws: Workspace,
    groups: Sequence[str],
    level: str,
    message: str,
    *,
    empty: bool = False,
) -> Path:
    """Write a new pending bump record.

    With a single configured group, ``groups`` may be omitted.

    Raises:
        GroupNotFoundError: If a group is not configured.
        BumperError: If the level or message is missing or invalid.
    """
    if empty:
        return write_bump_file(ws.root, {}, "")

    names = sorted(set(groups))
    if not names and len(ws.config.groups) == 1:
        names = [ws.config.groups[0].name]
    if not names:
        raise BumperError("at least one release group must be selected")

    known = ws.config.group_names()
    missing = [n for n in names if n not in known]
    if missing:
        raise GroupNotFoundError(f"release groups not found in config: {', '.join(missing)}")

    try:
        BumpLevel.from_label(level)
    except ValueError as e:
        raise BumperError(str(e)) from e
    if not message.strip():
        raise BumperError("changelog message cannot be empty")

    return write_bump_file(ws.root, {n: level for n in names}, message)
