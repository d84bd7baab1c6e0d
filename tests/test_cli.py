"""
Tests for the quote-sync command line.
"""

import json
import re

import aiohttp
import pytest
from aioresponses import aioresponses
from click.testing import CliRunner

from quote_sync.cli import cli
from quote_sync.config import settings
from quote_sync.sync.state import QuoteStore

ENDPOINT = "https://quotes.example.test/posts"
ENDPOINT_PATTERN = re.compile(r"^https://quotes\.example\.test/posts(\?.*)?$")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, store_file):
    def _invoke(*args):
        return runner.invoke(
            cli, ["--store-file", str(store_file), "--endpoint", ENDPOINT, *args]
        )
    return _invoke


class TestQuoteCommands:
    """Test the collection commands."""

    def test_add_and_show_by_category(self, invoke):
        result = invoke("add", "Keep going", "--category", "grit")
        assert result.exit_code == 0
        assert "Added: Keep going (grit)" in result.output

        result = invoke("show", "--category", "grit")
        assert result.exit_code == 0
        assert '"Keep going"' in result.output
        assert "— grit" in result.output

    def test_show_remembers_category(self, invoke, store_file):
        invoke("show", "--category", "life")
        assert QuoteStore(store_file).load_preference("selectedCategory") == "life"

        result = invoke("categories")
        assert "* life" in result.output
        assert "  all" in result.output

    def test_show_unknown_category_fails(self, invoke):
        result = invoke("show", "--category", "missing")
        assert result.exit_code == 1

    def test_last_redisplays_shown_quote(self, invoke):
        shown = invoke("show").output
        assert invoke("last").output == shown

    def test_add_empty_text_fails(self, invoke, store_file):
        result = invoke("add", "   ")
        assert result.exit_code == 1
        assert "cannot be empty" in result.output
        assert not store_file.exists()

    def test_add_duplicate_text_fails(self, invoke):
        invoke("add", "Only once")

        result = invoke("add", "Only once")

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_export_to_stdout(self, invoke):
        result = invoke("export", "-")
        assert result.exit_code == 0
        exported = json.loads(result.output)
        assert len(exported) == 5
        assert set(exported[0]) == {"text", "category"}

    def test_import_file(self, invoke, tmp_path):
        source = tmp_path / "import.json"
        source.write_text(json.dumps([{"text": "Imported"}]), encoding="utf-8")

        result = invoke("import", str(source))

        assert result.exit_code == 0
        assert "Imported 1 new quote(s)." in result.output

    def test_import_malformed_file_fails(self, invoke, tmp_path, store_file):
        source = tmp_path / "import.json"
        source.write_text('{"text": "not a list"}', encoding="utf-8")

        result = invoke("import", str(source))

        assert result.exit_code == 1
        assert "JSON array" in result.output
        assert not store_file.exists()


class TestSyncCommand:
    """Test running a sync cycle from the command line."""

    def test_sync_merges_remote_quotes(self, invoke, store_file):
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, payload=[{"id": 1, "title": "From server", "body": "qui est"}])
            for _ in range(5):
                m.post(ENDPOINT, payload={"id": 101}, status=201)

            result = invoke("sync")

        assert result.exit_code == 0
        assert "[syncing]" in result.output
        assert "[new_data] Synced - new data" in result.output
        assert "pushed 5" in result.output
        saved = QuoteStore(store_file).load()
        assert saved[-1].text == "From server"
        assert saved[-1].category == "qui"

    def test_sync_offline_exits_with_error(self, invoke, store_file):
        with aioresponses() as m:
            m.get(ENDPOINT_PATTERN, exception=aiohttp.ClientConnectionError("refused"))

            result = invoke("sync")

        assert result.exit_code == 1
        assert "[offline]" in result.output
        assert not store_file.exists()


class TestConfiguration:
    """Test that invalid settings are reported before any command runs."""

    @pytest.mark.parametrize(
        "name, value, env_var",
        [
            ("fetch_limit", -1, "QUOTE_SYNC_FETCH_LIMIT"),
            ("fetch_limit", 0, "QUOTE_SYNC_FETCH_LIMIT"),
            ("sync_interval", 0, "QUOTE_SYNC_INTERVAL"),
        ],
    )
    def test_invalid_setting_fails_cleanly(
        self, invoke, store_file, monkeypatch, name, value, env_var
    ):
        monkeypatch.setattr(settings, name, value)

        result = invoke("show")

        assert result.exit_code == 1
        assert f"Configuration error: {env_var}" in result.output
        assert not store_file.exists()

    def test_watch_rejects_non_positive_interval(self, invoke):
        result = invoke("watch", "--interval", "0")

        assert result.exit_code == 2
        assert "--interval" in result.output
