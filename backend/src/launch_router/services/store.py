"""Durable key-value store for launch state.

Two tiers are kept:

- **primary**: every key (attribution, deep link, destination, mode,
  installed flag, permission decision, push token, transient push URL).
- **shared**: a group-scoped mirror holding only the destination URL and
  push token, so a notification extension can read the same values.

Attribution maps are stored as JSON text. Deep-link maps are stored as
JSON text wrapped in base64 with `=` and `+` remapped to `(` and `)` so the
blob fits the restricted character set shared with other stored tokens.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

from ..config import LAUNCH_DATA_DIR

_BACKEND_DIR = Path(__file__).resolve().parents[3]  # backend/
_DEFAULT_DATA_DIR = _BACKEND_DIR / ".data"

KEY_ATTRIBUTION = "rg_attribution_info"
KEY_DEEPLINK = "rg_deeplink_info"
KEY_URL = "rg_destination_url"
KEY_MODE = "rg_mode_setting"
KEY_INSTALLED = "rg_installed_flag"
KEY_PERM_GRANTED = "rg_perm_granted"
KEY_PERM_BLOCKED = "rg_perm_blocked"
KEY_PERM_DATE = "rg_perm_date"
KEY_PUSH_TOKEN = "push_token"
KEY_SHARED_PUSH_TOKEN = "shared_fcm"
KEY_TEMP_URL = "temp_url"
# Last URL actually opened; read only when neither tier holds a resolved destination
KEY_LAST_OPENED_URL = "rg_last_opened_url"


@dataclass
class StoredData:
    """Snapshot of persisted launch state. Defaults describe a fresh install."""

    attribution: dict[str, str] = field(default_factory=dict)
    deeplink: dict[str, str] = field(default_factory=dict)
    url: str | None = None
    mode: str | None = None
    is_first_run: bool = True
    perm_granted: bool = False
    perm_blocked: bool = False
    perm_date: datetime | None = None


class DataStore(Protocol):
    def load(self) -> StoredData: ...

    def save_attribution(self, data: dict[str, str]) -> None: ...

    def save_deeplink(self, data: dict[str, str]) -> None: ...

    def save_url(self, url: str) -> None: ...

    def save_last_opened(self, url: str) -> None: ...

    def save_mode(self, mode: str) -> None: ...

    def mark_installed(self) -> None: ...

    def is_installed(self) -> bool: ...

    def save_permission(self, granted: bool, blocked: bool, now: datetime | None = None) -> None: ...

    def save_push_token(self, token: str) -> None: ...

    def push_token(self) -> str | None: ...

    def set_temp_url(self, url: str) -> None: ...

    def peek_temp_url(self) -> str | None: ...

    def clear_temp_url(self) -> None: ...


def encode_blob(text: str) -> str:
    raw = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return raw.replace("=", "(").replace("+", ")")


def decode_blob(blob: str) -> str | None:
    """Inverse of encode_blob. Returns None for anything that is not a valid blob."""
    raw = blob.replace("(", "=").replace(")", "+")
    try:
        return base64.b64decode(raw, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


def _to_json(data: dict[str, str]) -> str:
    return json.dumps(data, ensure_ascii=False, sort_keys=True)


def _parse_json_map(text: str | None) -> dict[str, str] | None:
    if not text:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    return {str(k): str(v) for k, v in data.items()}


class MemoryTier:
    """In-process tier. Nothing survives the process."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFileTier(MemoryTier):
    """Tier persisted as one JSON object per file, rewritten atomically on each change."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        self._lock = threading.Lock()
        self._values = self._read()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._values, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value
            self._write()

    def delete(self, key: str) -> None:
        with self._lock:
            if key in self._values:
                del self._values[key]
                self._write()


class KeyValueStore:
    """DataStore over a primary tier and a shared mirror tier."""

    def __init__(self, primary: MemoryTier, shared: MemoryTier) -> None:
        self.primary = primary
        self.shared = shared

    def load(self) -> StoredData:
        attribution = _parse_json_map(self.primary.get(KEY_ATTRIBUTION)) or {}

        deeplink: dict[str, str] = {}
        blob = self.primary.get(KEY_DEEPLINK)
        if isinstance(blob, str):
            deeplink = _parse_json_map(decode_blob(blob)) or {}

        url = self.primary.get(KEY_URL) or self.shared.get(KEY_URL) or self.primary.get(KEY_LAST_OPENED_URL)
        perm_date = self._perm_date()

        return StoredData(
            attribution=attribution,
            deeplink=deeplink,
            url=url or None,
            mode=self.primary.get(KEY_MODE),
            is_first_run=not self.is_installed(),
            perm_granted=bool(self.primary.get(KEY_PERM_GRANTED, False)),
            perm_blocked=bool(self.primary.get(KEY_PERM_BLOCKED, False)),
            perm_date=perm_date,
        )

    def _perm_date(self) -> datetime | None:
        raw = self.primary.get(KEY_PERM_DATE)
        if not raw:
            return None
        try:
            ts = float(raw)
            return datetime.fromtimestamp(ts / 1000, tz=timezone.utc) if ts > 0 else None
        except (TypeError, ValueError, OverflowError, OSError):
            logger.warning(f"Ignoring unreadable permission date {raw!r}")
            return None

    def save_attribution(self, data: dict[str, str]) -> None:
        self.primary.set(KEY_ATTRIBUTION, _to_json(data))

    def save_deeplink(self, data: dict[str, str]) -> None:
        self.primary.set(KEY_DEEPLINK, encode_blob(_to_json(data)))

    def save_url(self, url: str) -> None:
        self.primary.set(KEY_URL, url)
        self.shared.set(KEY_URL, url)

    def save_last_opened(self, url: str) -> None:
        self.primary.set(KEY_LAST_OPENED_URL, url)

    def save_mode(self, mode: str) -> None:
        self.primary.set(KEY_MODE, mode)

    def mark_installed(self) -> None:
        self.primary.set(KEY_INSTALLED, True)

    def is_installed(self) -> bool:
        return bool(self.primary.get(KEY_INSTALLED, False))

    def save_permission(self, granted: bool, blocked: bool, now: datetime | None = None) -> None:
        now = now or datetime.now(timezone.utc)
        self.primary.set(KEY_PERM_GRANTED, granted)
        self.primary.set(KEY_PERM_BLOCKED, blocked)
        self.primary.set(KEY_PERM_DATE, now.timestamp() * 1000)

    def save_push_token(self, token: str) -> None:
        self.primary.set(KEY_PUSH_TOKEN, token)
        self.shared.set(KEY_SHARED_PUSH_TOKEN, token)

    def push_token(self) -> str | None:
        return self.primary.get(KEY_PUSH_TOKEN) or self.shared.get(KEY_SHARED_PUSH_TOKEN)

    def set_temp_url(self, url: str) -> None:
        self.primary.set(KEY_TEMP_URL, url)

    def peek_temp_url(self) -> str | None:
        return self.primary.get(KEY_TEMP_URL) or None

    def clear_temp_url(self) -> None:
        self.primary.delete(KEY_TEMP_URL)


class MemoryStore(KeyValueStore):
    def __init__(self) -> None:
        super().__init__(MemoryTier(), MemoryTier())


class FileStore(KeyValueStore):
    """Store persisted under `data_dir` as primary.json and shared.json."""

    def __init__(self, data_dir: str | Path | None = None) -> None:
        root = Path(data_dir or os.environ.get("LAUNCH_DATA_DIR") or LAUNCH_DATA_DIR or _DEFAULT_DATA_DIR)
        self.data_dir = root
        super().__init__(JsonFileTier(root / "primary.json"), JsonFileTier(root / "shared.json"))
