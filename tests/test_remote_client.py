"""
Tests for the remote quote collection client.
"""

import asyncio
import re

import aiohttp
import pytest
from aioresponses import aioresponses

from quote_sync.config import settings
from quote_sync.remote import QuotesClient, category_from_body, record_from_item
from quote_sync.sync.state import Record

ENDPOINT = "https://quotes.example.test/posts"
ENDPOINT_PATTERN = re.compile(r"^https://quotes\.example\.test/posts(\?.*)?$")


def _items(count):
    return [
        {"id": i, "title": f"Title {i}", "body": f"Word{i} and more"}
        for i in range(1, count + 1)
    ]


class TestItemMapping:
    """Test mapping remote items onto records."""

    def test_maps_title_body_and_id(self):
        record = record_from_item({"id": 4, "title": "Hello", "body": "Quia et\nsuscipit"})
        assert record == Record(text="Hello", category="quia", remote_id=4)

    def test_category_defaults_when_body_missing_or_blank(self):
        assert category_from_body(None) == "general"
        assert category_from_body("   ") == "general"
        assert category_from_body(42) == "general"

    @pytest.mark.parametrize(
        "item",
        [
            "not an object",
            {"id": 1},
            {"id": 1, "title": ""},
            {"id": 1, "title": 12},
            {"title": "No id"},
            {"id": True, "title": "Bool id"},
        ],
    )
    def test_malformed_items_are_rejected(self, item):
        assert record_from_item(item) is None


class TestFetchRemote:
    """Test fetching the remote snapshot."""

    @pytest.mark.parametrize("limit", [0, -1])
    def test_rejects_non_positive_fetch_limit(self, limit):
        with pytest.raises(ValueError, match="fetch_limit"):
            QuotesClient(endpoint=ENDPOINT, fetch_limit=limit)

    def test_rejects_non_positive_configured_fetch_limit(self, monkeypatch):
        monkeypatch.setattr(settings, "fetch_limit", -1)
        with pytest.raises(ValueError, match="fetch_limit"):
            QuotesClient(endpoint=ENDPOINT)

    @pytest.mark.asyncio
    async def test_fetch_maps_items(self):
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, payload=_items(2), status=200)

            async with QuotesClient(endpoint=ENDPOINT, fetch_limit=10) as client:
                result = await client.fetch_remote()

        assert result.reachable
        assert result.records == [
            Record(text="Title 1", category="word1", remote_id=1),
            Record(text="Title 2", category="word2", remote_id=2),
        ]

    @pytest.mark.asyncio
    async def test_fetch_is_capped(self):
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, payload=_items(15), status=200)

            async with QuotesClient(endpoint=ENDPOINT, fetch_limit=10) as client:
                result = await client.fetch_remote()

        assert len(result.records) == 10

    @pytest.mark.asyncio
    async def test_malformed_items_are_skipped(self):
        payload = [{"id": 1, "title": "Good"}, {"id": 2}, "junk", {"id": 3, "title": "Also good"}]
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, payload=payload, status=200)

            async with QuotesClient(endpoint=ENDPOINT) as client:
                result = await client.fetch_remote()

        assert result.reachable
        assert [r.text for r in result.records] == ["Good", "Also good"]
        assert result.records[0].category == "general"

    @pytest.mark.asyncio
    async def test_connection_error_is_unreachable(self):
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, exception=aiohttp.ClientConnectionError("refused"))

            async with QuotesClient(endpoint=ENDPOINT) as client:
                result = await client.fetch_remote()

        assert not result.reachable
        assert result.records == []

    @pytest.mark.asyncio
    async def test_timeout_is_unreachable(self):
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, exception=asyncio.TimeoutError())

            async with QuotesClient(endpoint=ENDPOINT) as client:
                result = await client.fetch_remote()

        assert not result.reachable

    @pytest.mark.asyncio
    async def test_http_error_is_unreachable(self):
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, status=503, body="down")

            async with QuotesClient(endpoint=ENDPOINT) as client:
                result = await client.fetch_remote()

        assert not result.reachable

    @pytest.mark.asyncio
    async def test_undecodable_body_is_unreachable(self):
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, status=200, body="<html>oops</html>")

            async with QuotesClient(endpoint=ENDPOINT) as client:
                result = await client.fetch_remote()

        assert not result.reachable

    @pytest.mark.asyncio
    async def test_non_list_payload_is_reachable_but_empty(self):
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, payload={"error": "nope"}, status=200)

            async with QuotesClient(endpoint=ENDPOINT) as client:
                result = await client.fetch_remote()

        assert result.reachable
        assert result.records == []

    @pytest.mark.asyncio
    async def test_empty_list_is_reachable_but_empty(self):
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, payload=[], status=200)

            async with QuotesClient(endpoint=ENDPOINT) as client:
                result = await client.fetch_remote()

        assert result.reachable
        assert result.records == []


class TestPushRecord:
    """Test pushing local records."""

    @pytest.mark.asyncio
    async def test_push_sends_title_and_body(self):
        with aioresponses() as m:
            m.post(ENDPOINT, payload={"id": 101}, status=201)

            async with QuotesClient(endpoint=ENDPOINT) as client:
                ack = await client.push_record(Record(text="Mine", category="life"))

            calls = [call for calls in m.requests.values() for call in calls]

        assert ack == 101
        assert len(calls) == 1
        assert calls[0].kwargs["json"] == {"title": "Mine", "body": "life"}

    @pytest.mark.asyncio
    async def test_push_rejected_status_returns_none(self):
        with aioresponses() as m:
            m.post(ENDPOINT, status=500)

            async with QuotesClient(endpoint=ENDPOINT) as client:
                ack = await client.push_record(Record(text="Mine"))

        assert ack is None

    @pytest.mark.asyncio
    async def test_push_network_error_returns_none(self):
        with aioresponses() as m:
            m.post(ENDPOINT, exception=aiohttp.ClientConnectionError("refused"))

            async with QuotesClient(endpoint=ENDPOINT) as client:
                ack = await client.push_record(Record(text="Mine"))

        assert ack is None

    @pytest.mark.asyncio
    async def test_push_without_id_in_acknowledgement_returns_none(self):
        with aioresponses() as m:
            m.post(ENDPOINT, payload={"title": "Mine"}, status=201)

            async with QuotesClient(endpoint=ENDPOINT) as client:
                ack = await client.push_record(Record(text="Mine"))

        assert ack is None


class TestSessionLifecycle:
    """Test ownership of the HTTP session."""

    @pytest.mark.asyncio
    async def test_close_releases_owned_session(self):
        client = QuotesClient(endpoint=ENDPOINT)
        session = client._get_session()

        await client.close()

        assert session.closed

    @pytest.mark.asyncio
    async def test_injected_session_is_not_closed(self):
        async with aiohttp.ClientSession() as session:
            async with QuotesClient(endpoint=ENDPOINT, session=session):
                pass
            assert not session.closed
