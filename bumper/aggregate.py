"""Bump aggregation.

Reduces a batch of bump records to one ReleaseGroupStatus per release group:
the highest bump level seen plus the changelog entries for each level,
ordered by when the underlying bump file was committed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from .models import BumpLevel, BumpRecord, CommitInfo, LogEntry, ReleaseGroupStatus
from .shell import warn


def make_log_entry(record: BumpRecord, commit: CommitInfo | None) -> LogEntry:
    """Build the changelog entry for a record.

    Records with a known introducing commit are prefixed with its short hash
    and carry its timestamp; others get timestamp 0.
    """
    if commit is None:
        return LogEntry(content=record.message)
    return LogEntry(
        timestamp=commit.timestamp,
        commit=commit.short_sha,
        content=f"{commit.short_sha}: {record.message}",
    )


def aggregate(
    records: Iterable[BumpRecord],
    history: Mapping[Path, CommitInfo],
    group_names: Iterable[str],
) -> dict[str, ReleaseGroupStatus]:
    """Aggregate bump records per release group.

    Annotations naming an undeclared group or an unknown level are skipped
    with a warning; the rest of the record is still applied.

    Args:
        records: Bump records in directory listing order.
        history: Introducing commit per record origin, where resolved.
        group_names: Declared release groups.

    Returns:
        Map of group name → status, for every group a record mentions.
    """
    known = set(group_names)
    statuses: dict[str, ReleaseGroupStatus] = {}

    for record in records:
        entry = make_log_entry(record, history.get(record.origin))
        for group, label in record.levels.items():
            if group not in known:
                warn(f"{record.origin}: skipping bump for unknown group {group!r}")
                continue

            status = statuses.setdefault(group, ReleaseGroupStatus())
            try:
                level = BumpLevel.from_label(label)
            except ValueError:
                warn(f"{record.origin}: unknown level {label!r} for group {group!r}")
                continue

            status.logs_for(level).append(entry)
            status.level = max(status.level, level)

    # list.sort is stable, so equal timestamps keep listing order
    for status in statuses.values():
        for bucket in (status.major_logs, status.minor_logs, status.patch_logs):
            bucket.sort(key=lambda e: e.timestamp)

    return statuses


def merge_statuses(
    a: Mapping[str, ReleaseGroupStatus],
    b: Mapping[str, ReleaseGroupStatus],
) -> dict[str, ReleaseGroupStatus]:
    """Union two aggregation results.

    Per group the level is the max of both and each bucket is a's entries
    followed by b's. Neither input is modified.
    """
    merged = {name: status.model_copy(deep=True) for name, status in a.items()}
    for name, status in b.items():
        existing = merged.get(name)
        if existing is None:
            merged[name] = status.model_copy(deep=True)
            continue
        existing.level = max(existing.level, status.level)
        existing.major_logs.extend(e.model_copy() for e in status.major_logs)
        existing.minor_logs.extend(e.model_copy() for e in status.minor_logs)
        existing.patch_logs.extend(e.model_copy() for e in status.patch_logs)
    return merged
