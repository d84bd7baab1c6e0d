"""Quote records and their JSON-backed persistence.

The store keeps the quote collection and a small set of string preferences
in a single JSON document.  Every write replaces the document atomically so
a later ``load`` sees either the previous or the new content, never a mix.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "general"

COLLECTION_KEY = "quotes"
PREFERENCES_KEY = "preferences"
SELECTED_CATEGORY_KEY = "selectedCategory"
LAST_VIEWED_KEY = "lastViewedQuote"


class Record(BaseModel):
    """A single quote.

    ``text`` is the identity key.  ``remote_id`` (serialized as
    ``remoteId``) is set only for quotes known to the remote collection;
    quotes without it are local-only and pending push.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    text: str = Field(min_length=1)
    category: str = DEFAULT_CATEGORY
    remote_id: int | str | None = Field(default=None, alias="remoteId")

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: object) -> object:
        if value is None:
            return DEFAULT_CATEGORY
        if isinstance(value, str) and not value.strip():
            return DEFAULT_CATEGORY
        return value

    @property
    def synced(self) -> bool:
        return self.remote_id is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the persisted field names, omitting ``remoteId`` when unset."""
        return self.model_dump(by_alias=True, exclude_none=True)


_RECORDS_ADAPTER = TypeAdapter(list[Record])


class QuoteStore:
    """Reads and writes the JSON store file.

    The collection lives under ``quotes``; preferences live in their own
    ``preferences`` object so the two namespaces never collide.

    Args:
        store_file: Path to the JSON store file.
    """

    def __init__(self, store_file: str | Path) -> None:
        self._store_file = Path(store_file)

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def load(self) -> list[Record] | None:
        """Load the saved collection.

        Returns:
            The saved records, or ``None`` if nothing was saved yet or the
            saved payload does not match the expected shape.
        """
        document = self._read_document()
        raw = document.get(COLLECTION_KEY)
        if raw is None:
            return None
        try:
            return _RECORDS_ADAPTER.validate_python(raw)
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed quote collection in %s (%d validation error(s))",
                self._store_file, exc.error_count(),
            )
            return None

    def save(self, records: Sequence[Record]) -> None:
        """Persist the full collection, replacing whatever was saved before.

        Args:
            records: The records to write.
        """
        document = self._read_document()
        document[COLLECTION_KEY] = [r.to_dict() for r in records]
        self._write_document(document)

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def load_preference(self, key: str) -> str | None:
        preferences = self._read_document().get(PREFERENCES_KEY)
        if not isinstance(preferences, dict):
            return None
        value = preferences.get(key)
        return value if isinstance(value, str) else None

    def save_preference(self, key: str, value: str) -> None:
        document = self._read_document()
        preferences = document.get(PREFERENCES_KEY)
        if not isinstance(preferences, dict):
            preferences = {}
        preferences[key] = value
        document[PREFERENCES_KEY] = preferences
        self._write_document(document)

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _read_document(self) -> dict[str, Any]:
        """Return the parsed store document, or an empty one if unreadable."""
        if not self._store_file.exists() or self._store_file.stat().st_size == 0:
            return {}
        try:
            document = json.loads(self._store_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable store file %s: %s", self._store_file, exc)
            return {}
        if not isinstance(document, dict):
            logger.warning("Ignoring store file %s: top level is not an object", self._store_file)
            return {}
        return document

    def _write_document(self, document: dict[str, Any]) -> None:
        """Write the document to a temporary sibling file, then swap it in."""
        self._store_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self._store_file.parent, prefix=f".{self._store_file.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(document, indent=2, ensure_ascii=False) + "\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self._store_file)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
