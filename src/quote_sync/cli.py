"""CLI entrypoint for quote-sync.

Shows, adds, imports and exports quotes from the local store and runs
sync cycles against the remote collection, once or on a schedule.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import IO

import click

from quote_sync.collection import ALL_CATEGORIES, QuoteCollection
from quote_sync.config import settings
from quote_sync.remote import QuotesClient
from quote_sync.sync.engine import SyncEngine, SyncOutcome, SyncStatusLabel
from quote_sync.sync.scheduler import SyncScheduler
from quote_sync.sync.state import QuoteStore, Record


@dataclass
class _Context:
    store_file: str
    endpoint: str


def _load_collection(ctx: _Context) -> QuoteCollection:
    collection = QuoteCollection(QuoteStore(ctx.store_file))
    collection.init()
    return collection


def _echo_status(label: SyncStatusLabel, message: str) -> None:
    click.echo(f"[{label}] {message}")


def _build_engine(collection: QuoteCollection, client: QuotesClient) -> SyncEngine:
    return SyncEngine(
        collection,
        client,
        on_status=_echo_status,
        on_categories_changed=lambda: click.echo(
            f"Categories: {', '.join(collection.categories())}"
        ),
        status_reset_delay=settings.status_reset_delay,
    )


def _format_quote(record: Record) -> str:
    return f'"{record.text}"\n— {record.category}'


@click.group()
@click.option(
    "--store-file",
    default=lambda: settings.store_file,
    show_default=".quote-sync-store.json",
    help="Path to the local JSON store.",
)
@click.option(
    "--endpoint",
    default=lambda: settings.endpoint,
    help="Remote collection URL.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, store_file: str, endpoint: str, verbose: bool) -> None:
    """quote-sync CLI — a local quote collection kept in sync with a server."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings.validate()
    except ValueError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)
    ctx.obj = _Context(store_file=store_file, endpoint=endpoint)


@cli.command()
@click.option(
    "--category",
    default=None,
    help="Only pick from this category ('all' for every quote). Remembered.",
)
@click.pass_obj
def show(obj: _Context, category: str | None) -> None:
    """Show a random quote."""
    collection = _load_collection(obj)
    if category is None:
        category = collection.selected_category
    else:
        collection.selected_category = category

    record = collection.pick_random(category)
    if record is None:
        click.echo(f"No quotes in category '{category}'.", err=True)
        sys.exit(1)
    click.echo(_format_quote(record))


@cli.command()
@click.pass_obj
def last(obj: _Context) -> None:
    """Show the most recently displayed quote again."""
    record = _load_collection(obj).last_viewed
    if record is None:
        click.echo("No quote has been shown yet.")
        return
    click.echo(_format_quote(record))


@cli.command()
@click.argument("text")
@click.option("--category", default=None, help="Quote category (default: general).")
@click.pass_obj
def add(obj: _Context, text: str, category: str | None) -> None:
    """Add a new quote to the local collection."""
    collection = _load_collection(obj)
    try:
        record = collection.add(text, category)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Added: {record.text} ({record.category})")


@cli.command()
@click.pass_obj
def categories(obj: _Context) -> None:
    """List the categories in the local collection."""
    collection = _load_collection(obj)
    selected = collection.selected_category
    for name in [ALL_CATEGORIES, *collection.categories()]:
        marker = "*" if name == selected else " "
        click.echo(f"{marker} {name}")


@cli.command("export")
@click.argument(
    "output",
    type=click.Path(dir_okay=False, allow_dash=True),
    default="quotes.json",
)
@click.pass_obj
def export_quotes(obj: _Context, output: str) -> None:
    """Export the collection as JSON (use '-' for stdout)."""
    collection = _load_collection(obj)
    if output == "-":
        click.echo(collection.export_json())
        return
    Path(output).write_text(collection.export_json() + "\n", encoding="utf-8")
    click.echo(f"Exported {len(collection)} quote(s) to {output}")


@cli.command("import")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_obj
def import_quotes(obj: _Context, source: IO[str]) -> None:
    """Import quotes from a JSON file."""
    collection = _load_collection(obj)
    try:
        added = collection.import_json(source.read())
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Imported {added} new quote(s).")


@cli.command()
@click.pass_obj
def sync(obj: _Context) -> None:
    """Run one sync cycle against the remote collection."""

    async def _run() -> SyncOutcome:
        collection = _load_collection(obj)
        async with QuotesClient(endpoint=obj.endpoint) as client:
            engine = _build_engine(collection, client)
            result = await engine.run_cycle()
            await engine.aclose()
        click.echo(
            f"Fetched {result.fetched}, pushed {result.pushed}, "
            f"failed pushes {result.push_failures}."
        )
        return result.outcome

    outcome = asyncio.run(_run())
    if outcome in (SyncOutcome.UNREACHABLE, SyncOutcome.NO_DATA):
        sys.exit(1)


@cli.command()
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=lambda: settings.sync_interval,
    help="Seconds between sync cycles.",
)
@click.pass_obj
def watch(obj: _Context, interval: float) -> None:
    """Sync on a fixed interval until interrupted."""

    async def _run() -> None:
        collection = _load_collection(obj)
        async with QuotesClient(endpoint=obj.endpoint) as client:
            engine = _build_engine(collection, client)
            try:
                async with SyncScheduler(engine, interval, run_on_start=True):
                    await asyncio.Event().wait()
            finally:
                await engine.aclose()

    click.echo(f"Syncing every {interval:g}s. Press Ctrl+C to stop.")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        click.echo("Stopped.")


if __name__ == "__main__":
    cli()
