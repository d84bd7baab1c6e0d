"""MCP server for the local-first quote collection.

Creates a FastMCP server, initializes the store, the remote client, the
sync engine and its scheduler, and registers all tools.  The scheduler
runs for as long as the server does.

Run with:
    quote-sync-mcp
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP

from quote_sync.collection import QuoteCollection
from quote_sync.config import settings
from quote_sync.remote import QuotesClient
from quote_sync.sync.engine import SyncEngine, SyncStatusLabel
from quote_sync.sync.scheduler import SyncScheduler
from quote_sync.sync.state import QuoteStore
from quote_sync.tools.quote_tools import register_quote_tools
from quote_sync.tools.sync_tools import register_sync_tools

logger = logging.getLogger(__name__)


@dataclass
class _Components:
    client: QuotesClient
    engine: SyncEngine
    scheduler: SyncScheduler


_components: _Components | None = None


@asynccontextmanager
async def _lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Run the sync scheduler alongside the server."""
    if _components is None:
        yield
        return
    async with _components.client, _components.scheduler:
        try:
            yield
        finally:
            await _components.engine.aclose()


mcp = FastMCP(
    "quote-sync",
    instructions=(
        "Quote-Sync MCP server for a local quote collection that is kept "
        "in sync with a remote server. Use these tools to show, add, import "
        "and export quotes, and to trigger or inspect synchronization."
    ),
    lifespan=_lifespan,
)


def _log_status(label: SyncStatusLabel, message: str) -> None:
    logger.info("Sync status: %s (%s)", message, label)


def _initialize() -> None:
    """Initialize all components and register tools."""
    global _components

    settings.validate()

    collection = QuoteCollection(QuoteStore(settings.store_file))
    collection.init()

    client = QuotesClient()
    engine = SyncEngine(
        collection,
        client,
        on_status=_log_status,
        status_reset_delay=settings.status_reset_delay,
    )
    scheduler = SyncScheduler(engine, settings.sync_interval)
    _components = _Components(client=client, engine=engine, scheduler=scheduler)

    register_quote_tools(mcp, collection)
    register_sync_tools(mcp, engine, scheduler)


def main() -> None:
    """Entry point for the MCP server."""
    _initialize()
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
