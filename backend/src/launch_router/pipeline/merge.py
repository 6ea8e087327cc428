"""Attribution / deep-link merge rule."""

from __future__ import annotations

from typing import Mapping

DEEPLINK_PREFIX = "deep_"


def merge_deeplink(attribution: Mapping[str, str], deeplink: Mapping[str, str]) -> dict[str, str]:
    """Add each deep-link key as `deep_<key>` unless that key already exists.

    Attribution always wins: an existing `deep_*` entry is never overwritten.
    """
    merged = dict(attribution)
    for key, value in deeplink.items():
        prefixed = f"{DEEPLINK_PREFIX}{key}"
        if prefixed not in merged:
            merged[prefixed] = value
    return merged
