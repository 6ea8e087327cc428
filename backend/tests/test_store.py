import json
from datetime import datetime, timedelta, timezone

from launch_router.pipeline import PipelineContext
from launch_router.services.store import (
    KEY_DEEPLINK,
    KEY_PERM_DATE,
    KEY_URL,
    FileStore,
    MemoryStore,
    decode_blob,
    encode_blob,
)


def _context(store) -> PipelineContext:
    data = store.load()
    return PipelineContext(
        perm_granted=data.perm_granted,
        perm_blocked=data.perm_blocked,
        perm_date=data.perm_date,
    )


def test_fresh_store_defaults():
    data = MemoryStore().load()
    assert data.attribution == {}
    assert data.deeplink == {}
    assert data.url is None
    assert data.mode is None
    assert data.is_first_run is True
    assert data.perm_granted is False
    assert data.perm_blocked is False
    assert data.perm_date is None


def test_blob_round_trip_uses_restricted_alphabet():
    text = json.dumps({"campaign": "spring>>sale??", "ü": "ß"})
    blob = encode_blob(text)
    assert "=" not in blob and "+" not in blob
    assert decode_blob(blob) == text


def test_decode_blob_rejects_garbage():
    assert decode_blob("***not base64***") is None


def test_file_store_persists_across_instances(tmp_path):
    store = FileStore(tmp_path)
    store.save_attribution({"af_status": "Organic"})
    store.save_deeplink({"campaign": "spring"})
    store.save_url("https://example.com/x")
    store.save_mode("Active")
    store.mark_installed()

    data = FileStore(tmp_path).load()
    assert data.attribution == {"af_status": "Organic"}
    assert data.deeplink == {"campaign": "spring"}
    assert data.url == "https://example.com/x"
    assert data.mode == "Active"
    assert data.is_first_run is False

    primary = json.loads((tmp_path / "primary.json").read_text(encoding="utf-8"))
    assert "campaign" not in primary[KEY_DEEPLINK]
    shared = json.loads((tmp_path / "shared.json").read_text(encoding="utf-8"))
    assert shared[KEY_URL] == "https://example.com/x"


def test_corrupt_deeplink_blob_loads_as_empty():
    store = MemoryStore()
    store.primary.set(KEY_DEEPLINK, "!!!")
    assert store.load().deeplink == {}


def test_url_falls_back_to_shared_tier():
    store = MemoryStore()
    store.shared.set(KEY_URL, "https://example.com/shared")
    assert store.load().url == "https://example.com/shared"


def test_push_token_is_mirrored():
    store = MemoryStore()
    assert store.push_token() is None
    store.save_push_token("tok-1")
    assert store.push_token() == "tok-1"
    assert store.shared.get("shared_fcm") == "tok-1"


def test_temp_url_slot():
    store = MemoryStore()
    assert store.peek_temp_url() is None
    store.set_temp_url("https://example.com/push")
    assert store.peek_temp_url() == "https://example.com/push"
    store.clear_temp_url()
    assert store.peek_temp_url() is None


def test_permission_granted_blocks_prompt():
    store = MemoryStore()
    store.save_permission(granted=True, blocked=False)
    assert _context(store).can_ask_permission() is False


def test_permission_cooldown_after_deferral():
    store = MemoryStore()
    decided = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    store.save_permission(granted=False, blocked=False, now=decided)

    ctx = _context(store)
    assert ctx.perm_date == decided
    assert ctx.can_ask_permission(decided + timedelta(seconds=259199)) is False
    assert ctx.can_ask_permission(decided + timedelta(seconds=259200)) is True


def test_corrupt_permission_date_loads_as_unset():
    store = MemoryStore()
    store.save_permission(granted=False, blocked=False)
    store.primary.set(KEY_PERM_DATE, "yesterday")
    data = store.load()
    assert data.perm_date is None
    assert _context(store).can_ask_permission() is True


def test_last_opened_url_is_lowest_priority():
    store = MemoryStore()
    store.save_last_opened("https://example.com/push")
    assert store.load().url == "https://example.com/push"
    store.shared.set(KEY_URL, "https://example.com/shared")
    assert store.load().url == "https://example.com/shared"
    store.save_url("https://example.com/resolved")
    assert store.load().url == "https://example.com/resolved"
