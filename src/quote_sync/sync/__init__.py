"""Sync engine package for local-first quote synchronization."""

from quote_sync.sync.conflict import MergeAction, MergeResult, classify, merge_records
from quote_sync.sync.engine import (
    STATUS_MESSAGES,
    SyncEngine,
    SyncOutcome,
    SyncPhase,
    SyncResult,
    SyncStatusLabel,
)
from quote_sync.sync.scheduler import SyncScheduler
from quote_sync.sync.state import DEFAULT_CATEGORY, QuoteStore, Record

__all__ = [
    "DEFAULT_CATEGORY",
    "MergeAction",
    "MergeResult",
    "QuoteStore",
    "Record",
    "STATUS_MESSAGES",
    "SyncEngine",
    "SyncOutcome",
    "SyncPhase",
    "SyncResult",
    "SyncScheduler",
    "SyncStatusLabel",
    "classify",
    "merge_records",
]
