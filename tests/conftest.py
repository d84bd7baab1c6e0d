"""
Shared fixtures for quote-sync tests.
"""

import itertools
import random
from unittest.mock import AsyncMock

import pytest

from quote_sync.collection import QuoteCollection
from quote_sync.remote import FetchResult
from quote_sync.sync.state import QuoteStore, Record


@pytest.fixture
def store_file(tmp_path):
    """Path to a store file that does not exist yet."""
    return tmp_path / "store.json"


@pytest.fixture
def store(store_file):
    return QuoteStore(store_file)


@pytest.fixture
def collection(store):
    """Collection seeded with the default quotes and a fixed random source."""
    quotes = QuoteCollection(store, rng=random.Random(7))
    quotes.init()
    return quotes


@pytest.fixture
def remote_records():
    return [
        Record(text="Remote one", category="sunt", remote_id=1),
        Record(text="Remote two", category="est", remote_id=2),
    ]


@pytest.fixture
def gateway(remote_records):
    """Remote gateway mock that returns two records and acknowledges every push."""
    ids = itertools.count(101)
    mock = AsyncMock()
    mock.fetch_remote.return_value = FetchResult(records=remote_records, reachable=True)
    mock.push_record.side_effect = lambda record: next(ids)
    return mock
