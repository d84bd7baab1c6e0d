"""HTTP client for the remote quote collection.

Wraps a JSON collection resource that lists items as ``{id, title, body}``
and accepts new items via ``POST``.  Remote items are mapped onto local
``Record`` objects; local records are pushed back as ``{title, body}``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from quote_sync.config import settings
from quote_sync.sync.state import DEFAULT_CATEGORY, Record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Records fetched from the remote collection.

    ``reachable`` is ``False`` when the remote could not be contacted at
    all, which callers must tell apart from a reachable but empty remote.
    """

    records: list[Record] = field(default_factory=list)
    reachable: bool = True


def category_from_body(body: Any) -> str:
    """Derive a category from the first word of a remote item's body."""
    if isinstance(body, str):
        tokens = body.split()
        if tokens:
            return tokens[0].lower()
    return DEFAULT_CATEGORY


def record_from_item(item: Any) -> Record | None:
    """Map one remote item to a ``Record``.

    Returns:
        The mapped record, or ``None`` if the item has no usable title or id.
    """
    if not isinstance(item, dict):
        return None
    title = item.get("title")
    item_id = item.get("id")
    if not isinstance(title, str) or not title.strip():
        return None
    if isinstance(item_id, bool) or not isinstance(item_id, (int, str)):
        return None
    return Record(
        text=title,
        category=category_from_body(item.get("body")),
        remote_id=item_id,
    )


class QuotesClient:
    """Client for the remote quote collection.

    Owns a single ``aiohttp.ClientSession`` which is created on first use
    and released by :meth:`close` or by leaving an ``async with`` block.

    Usage::

        async with QuotesClient() as client:
            result = await client.fetch_remote()

    Args:
        endpoint: Collection URL. Falls back to ``settings.endpoint``.
        fetch_limit: Maximum number of items per fetch. Falls back to
            ``settings.fetch_limit``.
        timeout: Total timeout per request in seconds. Falls back to
            ``settings.request_timeout``.
        session: Optional pre-built session, mainly for testing. A session
            passed in is not closed by the client.

    Raises:
        ValueError: If ``fetch_limit`` or ``timeout`` is not positive.
    """

    def __init__(
        self,
        *,
        endpoint: str | None = None,
        fetch_limit: int | None = None,
        timeout: float | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        if fetch_limit is None:
            fetch_limit = settings.fetch_limit
        if timeout is None:
            timeout = settings.request_timeout
        if fetch_limit <= 0:
            raise ValueError(f"fetch_limit must be greater than zero, got {fetch_limit}")
        if timeout <= 0:
            raise ValueError(f"timeout must be greater than zero, got {timeout}")

        self._endpoint = endpoint or settings.endpoint
        self._fetch_limit = fetch_limit
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def __aenter__(self) -> QuotesClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def fetch_remote(self) -> FetchResult:
        """Fetch a bounded snapshot of the remote collection.

        Transport errors, timeouts, HTTP error statuses and undecodable
        bodies all yield an empty, unreachable result.  A decodable payload
        that is not a JSON array yields an empty but reachable result.
        Individual items that cannot be mapped are skipped.

        Returns:
            A ``FetchResult`` with at most ``fetch_limit`` records.
        """
        session = self._get_session()
        try:
            async with session.get(
                self._endpoint, params={"_limit": str(self._fetch_limit)}
            ) as response:
                response.raise_for_status()
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("Remote collection unreachable at %s: %s", self._endpoint, exc)
            return FetchResult(records=[], reachable=False)

        if not isinstance(payload, list):
            logger.warning(
                "Remote collection at %s returned %s instead of a list",
                self._endpoint, type(payload).__name__,
            )
            return FetchResult(records=[], reachable=True)

        records: list[Record] = []
        for item in payload[: self._fetch_limit]:
            record = record_from_item(item)
            if record is None:
                logger.debug("Skipping malformed remote item: %r", item)
                continue
            records.append(record)

        logger.info("Fetched %d remote record(s) from %s", len(records), self._endpoint)
        return FetchResult(records=records, reachable=True)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def push_record(self, record: Record) -> int | str | None:
        """Create ``record`` on the remote collection.

        Failures are logged and reported through the return value only;
        this method never raises for network or HTTP errors.

        Returns:
            The id the remote assigned in its acknowledgement, or ``None``
            if the create was rejected, failed, or came back without an id.
        """
        session = self._get_session()
        body = {"title": record.text, "body": record.category}
        try:
            async with session.post(self._endpoint, json=body) as response:
                if response.status >= 400:
                    logger.warning(
                        "Push of %r rejected: status=%d", record.text, response.status
                    )
                    return None
                ack = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("Push of %r failed: %s", record.text, exc)
            return None

        ack_id = ack.get("id") if isinstance(ack, dict) else None
        if isinstance(ack_id, bool) or not isinstance(ack_id, (int, str)):
            logger.warning("Push of %r acknowledged without an id: %r", record.text, ack)
            return None
        return ack_id
