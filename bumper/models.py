"""Data models for bumper.

These Pydantic models represent the core data structures shared by the bump
record store, the aggregator and the prerelease train engine.
"""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class BumpLevel(IntEnum):
    """Severity of a version bump.

    Ordered so that ``max()`` over a set of levels gives the bump to apply.
    NONE is the identity for that aggregation.
    """

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    @classmethod
    def from_label(cls, label: str) -> BumpLevel:
        """Parse a level label as written in a bump record.

        Raises:
            ValueError: If the label is not "major", "minor" or "patch".
        """
        try:
            return _LEVELS_BY_LABEL[label]
        except KeyError:
            raise ValueError(f"unknown bump level: {label!r}") from None

    @property
    def label(self) -> str:
        return "" if self is BumpLevel.NONE else self.name.lower()


_LEVELS_BY_LABEL = {
    "major": BumpLevel.MAJOR,
    "minor": BumpLevel.MINOR,
    "patch": BumpLevel.PATCH,
}


class CommitInfo(BaseModel):
    """The commit that introduced a file.

    Attributes:
        sha: Full commit hash.
        timestamp: Commit time as seconds since the epoch.
    """

    model_config = ConfigDict(frozen=True)

    sha: str
    timestamp: int

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


class BumpRecord(BaseModel):
    """One pending change note read from a bump file.

    Attributes:
        origin: Path of the file the record was read from.
        levels: Release group name → bump level label.
        message: Free-form Markdown body.
    """

    origin: Path
    levels: dict[str, str] = Field(default_factory=dict)
    message: str = ""


class LogEntry(BaseModel):
    """A single changelog line for one release group.

    Attributes:
        timestamp: Commit time of the introducing commit, 0 when unknown.
        commit: Short commit hash, "" when unknown.
        content: Rendered line, prefixed with the short hash when known.
    """

    timestamp: int = 0
    commit: str = ""
    content: str


class ReleaseGroupStatus(BaseModel):
    """Aggregated pending changes for one release group.

    ``level`` is the highest severity among the non-empty buckets and is
    NONE only when all three buckets are empty.
    """

    level: BumpLevel = BumpLevel.NONE
    major_logs: list[LogEntry] = Field(default_factory=list)
    minor_logs: list[LogEntry] = Field(default_factory=list)
    patch_logs: list[LogEntry] = Field(default_factory=list)

    def logs_for(self, level: BumpLevel) -> list[LogEntry]:
        """Return the bucket holding entries of the given level."""
        if level is BumpLevel.MAJOR:
            return self.major_logs
        if level is BumpLevel.MINOR:
            return self.minor_logs
        if level is BumpLevel.PATCH:
            return self.patch_logs
        raise ValueError("BumpLevel.NONE has no log bucket")


class VersionBump(BaseModel):
    """Records a version change for a release group.

    Attributes:
        group: Release group name.
        old: The version before bumping ("" when the group is in a
             prerelease train and the current version was not queried).
        new: The version after bumping.
    """

    group: str
    old: str = ""
    new: str
