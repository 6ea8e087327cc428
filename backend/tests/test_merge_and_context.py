from datetime import datetime, timedelta, timezone

import pytest

from launch_router.pipeline import Outcome, OutcomeAlreadySet, OutcomeKind, PipelineContext, merge_deeplink


def test_merge_with_empty_deeplink_is_identity():
    attribution = {"af_status": "Non-organic", "campaign": "spring"}
    assert merge_deeplink(attribution, {}) == attribution


def test_merge_prefixes_deeplink_keys_and_keeps_attribution():
    merged = merge_deeplink({"af_status": "Organic"}, {"af_status": "X", "foo": "bar"})
    assert merged == {"af_status": "Organic", "deep_af_status": "X", "deep_foo": "bar"}


def test_merge_never_overwrites_existing_prefixed_key():
    merged = merge_deeplink({"deep_foo": "from-attribution"}, {"foo": "from-deeplink"})
    assert merged["deep_foo"] == "from-attribution"


def test_merge_does_not_mutate_inputs():
    attribution = {"a": "1"}
    merge_deeplink(attribution, {"b": "2"})
    assert attribution == {"a": "1"}


def test_derived_flags():
    ctx = PipelineContext()
    assert not ctx.has_attribution
    assert not ctx.is_organic
    ctx.attribution = {"af_status": "Organic"}
    assert ctx.has_attribution
    assert ctx.is_organic
    ctx.attribution = {"af_status": "Non-organic"}
    assert not ctx.is_organic


def test_can_ask_permission_rules():
    now = datetime(2026, 1, 10, tzinfo=timezone.utc)
    assert PipelineContext().can_ask_permission(now)
    assert not PipelineContext(perm_granted=True).can_ask_permission(now)
    assert not PipelineContext(perm_blocked=True).can_ask_permission(now)

    decided = now - timedelta(days=3) + timedelta(seconds=1)
    assert not PipelineContext(perm_date=decided).can_ask_permission(now)
    assert PipelineContext(perm_date=now - timedelta(seconds=259200)).can_ask_permission(now)


def test_outcome_is_set_once():
    ctx = PipelineContext()
    ctx.set_outcome(Outcome.go_to_main())
    with pytest.raises(OutcomeAlreadySet):
        ctx.set_outcome(Outcome.go_to_web("https://example.com"))
    assert ctx.outcome.kind is OutcomeKind.GO_TO_MAIN


def test_open_url_goes_through_permission_prompt_when_allowed():
    ctx = PipelineContext()
    ctx.open_url("https://example.com/x")
    assert ctx.outcome == Outcome.show_permission("https://example.com/x")

    ctx = PipelineContext(perm_granted=True)
    ctx.open_url("https://example.com/x")
    assert ctx.outcome == Outcome.go_to_web("https://example.com/x")


def test_outcome_to_dict():
    assert Outcome.go_to_web("https://e.com").to_dict() == {"outcome": "go_to_web", "url": "https://e.com"}
    assert Outcome.pending().to_dict() == {"outcome": "pending", "url": None}
