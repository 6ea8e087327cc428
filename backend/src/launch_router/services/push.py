"""Push notification ingestion: pull a destination URL out of a payload."""

from __future__ import annotations

from typing import Any, Mapping

from loguru import logger

from .store import DataStore

# Checked in order; first string match wins.
PUSH_URL_PATHS: tuple[tuple[str, ...], ...] = (
    ("url",),
    ("data", "url"),
    ("aps", "data", "url"),
    ("custom", "target_url"),
)


def _dig(payload: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    node: Any = payload
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def extract_push_url(payload: Mapping[str, Any]) -> str | None:
    for path in PUSH_URL_PATHS:
        value = _dig(payload, path)
        if isinstance(value, str):
            return value
    return None


class PushIngestor:
    def __init__(self, store: DataStore) -> None:
        self.store = store

    def ingest(self, payload: Mapping[str, Any]) -> str | None:
        """Store the payload's URL in the transient slot read by the next launch."""
        url = extract_push_url(payload)
        if url is None:
            return None
        self.store.set_temp_url(url)
        logger.info(f"Push destination stored: {url}")
        return url

    def register_token(self, token: str) -> None:
        self.store.save_push_token(token)
