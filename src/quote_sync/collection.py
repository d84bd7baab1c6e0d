"""The in-memory quote collection and its user-facing operations.

``QuoteCollection`` owns the records for the lifetime of the process.  It
is hydrated from the store (or seeded with the built-in quotes), and every
mutation is written straight back through the store.
"""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from quote_sync.sync.state import (
    DEFAULT_CATEGORY,
    LAST_VIEWED_KEY,
    SELECTED_CATEGORY_KEY,
    QuoteStore,
    Record,
)

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"

DEFAULT_QUOTES: tuple[Record, ...] = (
    Record(text="The only way to do great work is to love what you do.", category="motivational"),
    Record(text="Life is what happens when you're busy making other plans.", category="life"),
    Record(text="Success doesn’t arrive — you build it, brick by brick.", category="success"),
    Record(text="We have the boldness to speak up", category="courage"),
    Record(text="Start small, stay consistent.", category="motivation"),
)


class EmptyQuoteError(ValueError):
    """Raised when a quote is added without any text."""


class DuplicateQuoteError(ValueError):
    """Raised when a quote with the same text already exists."""


class QuoteImportError(ValueError):
    """Raised when an import payload is not a JSON array."""


class QuoteCollection:
    """Owns the quote records and the persisted preferences.

    Args:
        store: The store used for hydration and persistence.
        seed: Records used when the store holds no collection.
        rng: Random source for :meth:`pick_random`.
    """

    def __init__(
        self,
        store: QuoteStore,
        seed: Iterable[Record] = DEFAULT_QUOTES,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._seed = list(seed)
        self._rng = rng or random.Random()
        self._records: list[Record] = []

    def init(self) -> None:
        """Hydrate from the store, or fall back to the seed quotes."""
        saved = self._store.load()
        if saved is None:
            logger.info("No saved quotes found, using %d default quote(s)", len(self._seed))
            self._records = list(self._seed)
        else:
            self._records = saved

    @property
    def records(self) -> list[Record]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, text: object) -> bool:
        return any(r.text == text for r in self._records)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, text: str, category: str | None = None) -> Record:
        """Add a local-only quote and persist the collection.

        Args:
            text: Quote text; surrounding whitespace is stripped.
            category: Optional category; blank means ``"general"``.

        Returns:
            The new record.

        Raises:
            EmptyQuoteError: If ``text`` is empty after stripping.
            DuplicateQuoteError: If a quote with the same text exists.
        """
        text = text.strip()
        if not text:
            raise EmptyQuoteError("Quote text cannot be empty")
        if text in self:
            raise DuplicateQuoteError(f"Quote already exists: {text!r}")

        record = Record(text=text, category=(category or "").strip() or DEFAULT_CATEGORY)
        self._records.append(record)
        self._store.save(self._records)
        logger.info("Added quote %r (%s)", record.text, record.category)
        return record

    def import_json(self, payload: str) -> int:
        """Import quotes from a JSON array.

        Elements that are objects with a non-empty ``text`` not already in
        the collection are added; anything else is skipped.  A payload that
        is not valid JSON or not an array is rejected before any change.

        Returns:
            The number of quotes added.

        Raises:
            QuoteImportError: If the payload is not a JSON array.
        """
        try:
            data = json.loads(payload)
        except ValueError as exc:
            raise QuoteImportError(f"Invalid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise QuoteImportError("Import file must contain a JSON array of quotes")

        added = 0
        for item in data:
            record = self._record_from_import(item)
            if record is None or record.text in self:
                continue
            self._records.append(record)
            added += 1

        if added:
            self._store.save(self._records)
        logger.info("Imported %d of %d quote(s)", added, len(data))
        return added

    def replace(self, records: Sequence[Record]) -> None:
        """Swap in a new collection (after a merge) and persist it."""
        self._records = list(records)
        self._store.save(self._records)

    def mark_synced(self, acknowledged: Mapping[str, int | str]) -> int:
        """Attach remote ids to local-only quotes the remote has acknowledged.

        Args:
            acknowledged: Remote id per quote text.

        Returns:
            The number of records updated.  The collection is persisted
            only when that number is non-zero.
        """
        updated = 0
        for index, record in enumerate(self._records):
            remote_id = acknowledged.get(record.text)
            if remote_id is None or record.synced:
                continue
            self._records[index] = record.model_copy(update={"remote_id": remote_id})
            updated += 1
        if updated:
            self._store.save(self._records)
        return updated

    @staticmethod
    def _record_from_import(item: Any) -> Record | None:
        if not isinstance(item, dict):
            return None
        text = item.get("text")
        if not isinstance(text, str) or not text.strip():
            return None
        category = item.get("category")
        try:
            return Record(
                text=text,
                category=category if isinstance(category, str) else DEFAULT_CATEGORY,
            )
        except ValidationError:
            return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def export_json(self) -> str:
        """Serialize the collection as a pretty-printed array of ``{text, category}``."""
        return json.dumps(
            [{"text": r.text, "category": r.category} for r in self._records],
            indent=2,
            ensure_ascii=False,
        )

    def categories(self) -> list[str]:
        return sorted({r.category for r in self._records})

    def filter(self, category: str = ALL_CATEGORIES) -> list[Record]:
        if category == ALL_CATEGORIES:
            return list(self._records)
        return [r for r in self._records if r.category == category]

    def unsynced(self) -> list[Record]:
        return [r for r in self._records if not r.synced]

    def pick_random(self, category: str = ALL_CATEGORIES) -> Record | None:
        """Pick a quote uniformly at random and remember it as last viewed.

        Returns:
            The chosen record, or ``None`` when no quote matches ``category``.
        """
        candidates = self.filter(category)
        if not candidates:
            return None
        record = self._rng.choice(candidates)
        self.last_viewed = record
        return record

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    @property
    def selected_category(self) -> str:
        return self._store.load_preference(SELECTED_CATEGORY_KEY) or ALL_CATEGORIES

    @selected_category.setter
    def selected_category(self, category: str) -> None:
        self._store.save_preference(SELECTED_CATEGORY_KEY, category)

    @property
    def last_viewed(self) -> Record | None:
        raw = self._store.load_preference(LAST_VIEWED_KEY)
        if raw is None:
            return None
        try:
            return Record.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring malformed last viewed quote")
            return None

    @last_viewed.setter
    def last_viewed(self, record: Record) -> None:
        self._store.save_preference(LAST_VIEWED_KEY, json.dumps(record.to_dict(), ensure_ascii=False))
