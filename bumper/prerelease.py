"""Prerelease train engine.

A release group is either stable (no entry in the prerelease state) or in a
prerelease train: an entry recording the train's tag, the stable version the
train started from, and the prerelease counter. Each commit while in a train
produces ``<base>-<tag>.<counter>``, where ``base`` is ``from_version``
bumped by the highest level accumulated so far. The counter increments while
the base stays put and restarts at 1 whenever the base escalates.

State is persisted in .bumper/prerelease.toml::

    [groups.api]
    tag = "beta"
    from_version = "1.2.3"
    counter = 2
    held = ["bump-1f2e3d4c.md"]

``held`` lists the files in .bumper/prerelease/ consumed while the group was
in its current train; only those count towards the accumulated level. The
file is removed when no group is in a train.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .config import prerelease_state_path
from .errors import ConfigError
from .models import BumpLevel
from .toml import dump_state_tables, get_state_tables, load_toml, save_toml
from .versions import bump_version, format_prerelease, parse_version

NOT_IN_PRERELEASE = "not in prerelease"


class EnterOutcome(Enum):
    ENTERED = "entered"
    SWITCHED = "switched"
    ALREADY = "already"


class PrereleaseGroupState(BaseModel):
    """An active prerelease train for one release group.

    Attributes:
        tag: Prerelease label, e.g. "beta".
        from_version: Stable MAJOR.MINOR.PATCH the train started from.
        counter: Last issued prerelease number; 0 until the first commit.
        held: Names of held bump files consumed by this train.
    """

    tag: str
    from_version: str
    counter: int = 0
    held: list[str] = Field(default_factory=list)


class PrereleaseState(BaseModel):
    """Prerelease trains of every group, keyed by group name.

    Presence of a key means the group is in a train.
    """

    groups: dict[str, PrereleaseGroupState] = Field(default_factory=dict)

    def is_in_prerelease(self, group: str) -> bool:
        return group in self.groups

    def get(self, group: str) -> PrereleaseGroupState | None:
        return self.groups.get(group)

    def enter(self, group: str, tag: str, current_version: str) -> EnterOutcome:
        """Put a group into a prerelease train.

        Re-entering with the same tag changes nothing. Entering with a
        different tag keeps from_version and restarts the counter. A stable
        group starts from current_version with any prerelease suffix dropped.

        Raises:
            VersionError: If current_version is needed and unparseable.
        """
        existing = self.groups.get(group)
        if existing is not None:
            if existing.tag == tag:
                return EnterOutcome.ALREADY
            self.groups[group] = PrereleaseGroupState(
                tag=tag, from_version=existing.from_version, held=existing.held
            )
            return EnterOutcome.SWITCHED

        current = parse_version(current_version)
        from_version = f"{current.major}.{current.minor}.{current.patch}"
        self.groups[group] = PrereleaseGroupState(tag=tag, from_version=from_version)
        return EnterOutcome.ENTERED

    def exit(self, group: str) -> None:
        """Remove a group from its train, if any."""
        self.groups.pop(group, None)

    def set_counter(self, group: str, counter: int) -> None:
        if (state := self.groups.get(group)) is not None:
            state.counter = counter

    def claim(self, group: str, names: list[str]) -> None:
        """Record held bump files as consumed by a group's train."""
        if (state := self.groups.get(group)) is not None:
            state.held.extend([n for n in names if n not in state.held])

    def exclusive_held(self, group: str) -> list[str]:
        """Held files of a group's train that no other train has consumed."""
        entry = self.groups.get(group)
        if entry is None:
            return []
        others = {n for g, s in self.groups.items() if g != group for n in s.held}
        return [n for n in entry.held if n not in others]


def compute_next_version(
    from_version: str,
    tag: str,
    counter: int,
    accumulated: BumpLevel,
    pending: BumpLevel,
) -> tuple[str, int]:
    """Compute the next prerelease version of a train.

    Being in a train always bumps at least a patch. The counter continues
    only when the base implied by the accumulated level alone equals the new
    base; otherwise the train restarts at 1.

    Examples:
        ("1.2.3", "beta", 0, NONE, MINOR) → ("1.3.0-beta.1", 1)
        ("1.2.3", "beta", 1, MINOR, PATCH) → ("1.3.0-beta.2", 2)
        ("1.2.3", "beta", 1, MINOR, MAJOR) → ("2.0.0-beta.1", 1)

    Args:
        from_version: Stable version the train started from.
        tag: Prerelease label.
        counter: Last issued prerelease number (0 before the first commit).
        accumulated: Highest level already released in this train.
        pending: Highest level of the bumps being committed now.

    Returns:
        Tuple of (version string, new counter).

    Raises:
        VersionError: If from_version is not a semantic version.
    """
    start = parse_version(from_version)
    highest = max(accumulated, pending)
    base = bump_version(start, highest if highest is not BumpLevel.NONE else BumpLevel.PATCH)

    # With nothing accumulated there is no previous base to compare against,
    # so the counter restarts even when counter > 0.
    previous_base = None
    if counter > 0 and accumulated is not BumpLevel.NONE:
        previous_base = bump_version(start, accumulated)

    new_counter = counter + 1 if previous_base is not None and previous_base == base else 1
    return format_prerelease(base, tag, new_counter), new_counter


def describe_group(state: PrereleaseState, group: str) -> str:
    """Summarize a group's train as ``<from>-<tag>.<n>``.

    The counter is shown as at least 1 since the next commit produces ``.1``.
    """
    entry = state.get(group)
    if entry is None:
        return NOT_IN_PRERELEASE
    return f"{entry.from_version}-{entry.tag}.{max(entry.counter, 1)}"


def load_prerelease_state(workspace: Path) -> PrereleaseState:
    """Load the prerelease state; a missing file means no active trains.

    Raises:
        ConfigError: If the file is unreadable or malformed.
    """
    path = prerelease_state_path(workspace)
    if not path.exists():
        return PrereleaseState()

    tables = get_state_tables(load_toml(path))
    try:
        return PrereleaseState.model_validate({"groups": tables})
    except ValidationError as e:
        raise ConfigError(f"{path}: invalid prerelease state: {e}") from e


def save_prerelease_state(workspace: Path, state: PrereleaseState) -> None:
    """Write the prerelease state, deleting the file when no trains remain."""
    path = prerelease_state_path(workspace)
    if not state.groups:
        path.unlink(missing_ok=True)
        return

    tables = {name: entry.model_dump() for name, entry in state.groups.items()}
    save_toml(path, dump_state_tables(tables))
