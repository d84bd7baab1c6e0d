from quote_sync.remote.client import (
    FetchResult,
    QuotesClient,
    category_from_body,
    record_from_item,
)

__all__ = [
    "FetchResult",
    "QuotesClient",
    "category_from_body",
    "record_from_item",
]
