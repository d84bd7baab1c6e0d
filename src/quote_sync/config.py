from __future__ import annotations

import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        self.endpoint: str = os.environ.get(
            "QUOTE_SYNC_ENDPOINT", "https://jsonplaceholder.typicode.com/posts"
        )
        self.store_file: str = os.environ.get(
            "QUOTE_SYNC_STORE_FILE", ".quote-sync-store.json"
        )
        self.sync_interval: float = _env_float("QUOTE_SYNC_INTERVAL", 30.0)
        self.fetch_limit: int = _env_int("QUOTE_SYNC_FETCH_LIMIT", 10)
        self.status_reset_delay: float = _env_float(
            "QUOTE_SYNC_STATUS_RESET_DELAY", 3.0
        )
        self.request_timeout: float = _env_float("QUOTE_SYNC_REQUEST_TIMEOUT", 10.0)

    def validate(self) -> None:
        if not self.endpoint.startswith(("http://", "https://")):
            raise ValueError("QUOTE_SYNC_ENDPOINT must be an http(s) URL")
        if self.sync_interval <= 0:
            raise ValueError("QUOTE_SYNC_INTERVAL must be greater than zero")
        if self.fetch_limit <= 0:
            raise ValueError("QUOTE_SYNC_FETCH_LIMIT must be greater than zero")
        if self.status_reset_delay < 0:
            raise ValueError("QUOTE_SYNC_STATUS_RESET_DELAY must not be negative")
        if self.request_timeout <= 0:
            raise ValueError("QUOTE_SYNC_REQUEST_TIMEOUT must be greater than zero")


settings = Settings()
