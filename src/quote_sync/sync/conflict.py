"""Conflict resolution between the local collection and a remote snapshot.

Remote wins on a text match when the local quote is already synced;
local-only quotes are never overwritten; unmatched remote quotes are
appended.  There is no timestamp comparison, so a remote rollback looks the
same as a genuine update.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from quote_sync.sync.state import Record


class MergeAction(StrEnum):
    """What the resolver does with one incoming remote record."""

    APPEND = "append"
    REPLACE = "replace"
    UNCHANGED = "unchanged"
    KEEP_LOCAL = "keep_local"


@dataclass(frozen=True)
class MergeResult:
    """Outcome of merging a remote snapshot into the local collection."""

    records: list[Record]
    changed: bool
    appended: int = 0
    replaced: int = 0
    protected: int = 0


def classify(existing: Record | None, incoming: Record) -> MergeAction:
    """Decide how ``incoming`` affects the local record sharing its text.

    Args:
        existing: The local record with the same text, if any.
        incoming: The remote record.

    Returns:
        ``APPEND`` when there is no local match, ``KEEP_LOCAL`` when the
        match is local-only, ``UNCHANGED`` when the synced match already
        equals the remote record, and ``REPLACE`` otherwise.
    """
    if existing is None:
        return MergeAction.APPEND
    if not existing.synced:
        return MergeAction.KEEP_LOCAL
    if existing == incoming:
        return MergeAction.UNCHANGED
    return MergeAction.REPLACE


def merge_records(local: Sequence[Record], remote: Sequence[Record]) -> MergeResult:
    """Merge ``remote`` into ``local`` without mutating either input.

    Records already appended during this merge take part in later text
    matches, so a remote snapshot with repeated titles still yields one
    record per text.

    Args:
        local: The current local collection.
        remote: Records mapped from the remote snapshot, in gateway order.

    Returns:
        A ``MergeResult`` with the merged records and whether anything changed.
    """
    merged = list(local)
    positions: dict[str, int] = {}
    for index, record in enumerate(merged):
        positions.setdefault(record.text, index)
    appended = replaced = protected = 0

    for incoming in remote:
        index = positions.get(incoming.text)
        existing = merged[index] if index is not None else None
        action = classify(existing, incoming)

        if action == MergeAction.APPEND:
            positions[incoming.text] = len(merged)
            merged.append(incoming)
            appended += 1
        elif action == MergeAction.REPLACE:
            assert index is not None  # noqa: S101
            merged[index] = incoming
            replaced += 1
        elif action == MergeAction.KEEP_LOCAL:
            protected += 1

    return MergeResult(
        records=merged,
        changed=bool(appended or replaced),
        appended=appended,
        replaced=replaced,
        protected=protected,
    )
