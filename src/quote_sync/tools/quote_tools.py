"""MCP tools for reading and editing the local quote collection."""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from quote_sync.collection import ALL_CATEGORIES, QuoteCollection


def register_quote_tools(mcp: FastMCP, collection: QuoteCollection) -> None:
    """Register collection tools with the MCP server."""

    @mcp.tool()
    def random_quote(category: str | None = None) -> dict[str, Any]:
        """Return a random quote, optionally restricted to one category.

        The chosen category is remembered for the next call.

        Args:
            category: Category to pick from, or 'all'. Defaults to the last
                selected category.
        """
        if category is None:
            category = collection.selected_category
        else:
            collection.selected_category = category

        record = collection.pick_random(category)
        if record is None:
            return {"found": False, "category": category}
        return {"found": True, **record.to_dict()}

    @mcp.tool()
    def add_quote(text: str, category: str | None = None) -> dict[str, Any]:
        """Add a quote to the local collection. It is pushed on the next sync.

        Args:
            text: The quote text. Must not be empty.
            category: Optional category, 'general' if omitted.
        """
        try:
            record = collection.add(text, category)
        except ValueError as exc:
            return {"success": False, "message": str(exc)}
        return {"success": True, "quote": record.to_dict()}

    @mcp.tool()
    def list_categories() -> dict[str, Any]:
        """List the categories present in the local collection."""
        return {
            "categories": [ALL_CATEGORIES, *collection.categories()],
            "selected": collection.selected_category,
        }

    @mcp.tool()
    def export_quotes() -> str:
        """Export the local collection as a JSON array of {text, category}."""
        return collection.export_json()

    @mcp.tool()
    def import_quotes(payload: str) -> dict[str, Any]:
        """Import quotes from a JSON array of {text, category} objects.

        Quotes whose text already exists are skipped. A payload that is not
        a JSON array is rejected without importing anything.

        Args:
            payload: The JSON document to import.
        """
        try:
            added = collection.import_json(payload)
        except ValueError as exc:
            return {"success": False, "message": str(exc)}
        return {"success": True, "added": added, "total": len(collection)}
