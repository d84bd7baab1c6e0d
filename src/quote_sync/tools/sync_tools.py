"""MCP tools for triggering sync cycles and checking sync status."""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from quote_sync.sync.engine import STATUS_MESSAGES, SyncEngine
from quote_sync.sync.scheduler import SyncScheduler


def register_sync_tools(
    mcp: FastMCP,
    engine: SyncEngine,
    scheduler: SyncScheduler,
) -> None:
    """Register sync tools with the MCP server."""

    @mcp.tool()
    async def sync_now() -> dict[str, Any]:
        """Run a sync cycle against the remote collection right away.

        If a scheduled cycle is already running, nothing happens and the
        outcome is 'skipped'.
        """
        result = await scheduler.trigger()
        return result.model_dump(mode="json")

    @mcp.tool()
    def get_sync_status() -> dict[str, Any]:
        """Report the current sync phase, status and last cycle result."""
        status = engine.status
        last = engine.last_result
        return {
            "phase": engine.phase.value,
            "status": status.value if status else None,
            "message": STATUS_MESSAGES[status] if status else "",
            "scheduler_running": scheduler.running,
            "interval_seconds": scheduler.interval,
            "last_result": last.model_dump(mode="json") if last else None,
        }
