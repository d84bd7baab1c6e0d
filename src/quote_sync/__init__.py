"""Local-first quote collection synchronized with a remote server."""

from quote_sync.collection import (
    ALL_CATEGORIES,
    DEFAULT_QUOTES,
    DuplicateQuoteError,
    EmptyQuoteError,
    QuoteCollection,
    QuoteImportError,
)
from quote_sync.remote import FetchResult, QuotesClient
from quote_sync.sync import (
    QuoteStore,
    Record,
    SyncEngine,
    SyncOutcome,
    SyncResult,
    SyncScheduler,
    SyncStatusLabel,
    merge_records,
)

__all__ = [
    "ALL_CATEGORIES",
    "DEFAULT_QUOTES",
    "DuplicateQuoteError",
    "EmptyQuoteError",
    "FetchResult",
    "QuoteCollection",
    "QuoteImportError",
    "QuoteStore",
    "QuotesClient",
    "Record",
    "SyncEngine",
    "SyncOutcome",
    "SyncResult",
    "SyncScheduler",
    "SyncStatusLabel",
    "merge_records",
]
