import asyncio

from launch_router.services.reconciliation import AttributionBuffer

DEBOUNCE = 0.05


def _buffer(store):
    resolved, observed = [], []
    buf = AttributionBuffer(
        store,
        on_resolved=resolved.append,
        on_deeplink=observed.append,
        debounce_seconds=DEBOUNCE,
    )
    return buf, resolved, observed


def test_attribution_alone_emits_after_debounce(store):
    async def go():
        buf, resolved, _ = _buffer(store)
        await buf.receive_attribution({"af_status": "Non-organic"})
        assert resolved == []
        assert buf.pending
        await asyncio.sleep(DEBOUNCE * 4)
        return resolved

    assert asyncio.run(go()) == [{"af_status": "Non-organic"}]


def test_deeplink_after_attribution_merges_immediately(store):
    async def go():
        buf, resolved, observed = _buffer(store)
        await buf.receive_attribution({"af_status": "Organic"})
        await buf.receive_deeplink({"af_status": "X", "foo": "bar"})
        assert not buf.pending
        await asyncio.sleep(DEBOUNCE * 4)
        return resolved, observed

    resolved, observed = asyncio.run(go())
    assert resolved == [{"af_status": "Organic", "deep_af_status": "X", "deep_foo": "bar"}]
    assert observed == [{"af_status": "X", "foo": "bar"}]


def test_deeplink_first_waits_for_attribution(store):
    async def go():
        buf, resolved, observed = _buffer(store)
        await buf.receive_deeplink({"campaign": "spring"})
        assert resolved == []
        assert observed == [{"campaign": "spring"}]
        await buf.receive_attribution({"media_source": "ads"})
        return resolved

    assert asyncio.run(go()) == [{"media_source": "ads", "deep_campaign": "spring"}]


def test_concurrent_arrival_emits_once(store):
    async def go():
        buf, resolved, _ = _buffer(store)
        await asyncio.gather(
            buf.receive_attribution({"a": "1"}),
            buf.receive_deeplink({"b": "2"}),
        )
        await asyncio.sleep(DEBOUNCE * 4)
        return resolved

    assert asyncio.run(go()) == [{"a": "1", "deep_b": "2"}]


def test_received_data_is_persisted(store):
    async def go():
        buf, _, _ = _buffer(store)
        await buf.receive_deeplink({"campaign": "spring", "clicks": 3})
        await buf.receive_attribution({"af_status": "Non-organic", "is_first_launch": True})

    asyncio.run(go())
    data = store.load()
    assert data.deeplink == {"campaign": "spring", "clicks": "3"}
    assert data.attribution == {
        "af_status": "Non-organic",
        "is_first_launch": "true",
        "deep_campaign": "spring",
        "deep_clicks": "3",
    }


def test_deeplink_ignored_after_install(store):
    store.mark_installed()

    async def go():
        buf, resolved, observed = _buffer(store)
        await buf.receive_deeplink({"campaign": "spring"})
        await buf.receive_attribution({"a": "1"})
        await asyncio.sleep(DEBOUNCE * 4)
        return resolved, observed

    resolved, observed = asyncio.run(go())
    assert observed == []
    assert resolved == [{"a": "1"}]
    assert store.load().deeplink == {}


def test_attribution_failure_is_flagged(store):
    async def go():
        buf, resolved, _ = _buffer(store)
        await buf.receive_attribution_failure("timeout")
        await asyncio.sleep(DEBOUNCE * 4)
        return resolved

    assert asyncio.run(go()) == [{"error": "true", "error_desc": "timeout"}]


def test_async_callback_is_awaited(store):
    seen = []

    async def on_resolved(merged):
        await asyncio.sleep(0)
        seen.append(merged)

    async def go():
        buf = AttributionBuffer(store, on_resolved=on_resolved, debounce_seconds=DEBOUNCE)
        await buf.receive_deeplink({"x": "1"})
        await buf.receive_attribution({"y": "2"})

    asyncio.run(go())
    assert seen == [{"y": "2", "deep_x": "1"}]


def test_close_cancels_pending_merge(store):
    async def go():
        buf, resolved, _ = _buffer(store)
        await buf.receive_attribution({"a": "1"})
        await buf.close()
        await asyncio.sleep(DEBOUNCE * 4)
        return resolved

    assert asyncio.run(go()) == []
