"""Attribution / deep-link reconciliation buffer.

Attribution data and deep-link data arrive independently, in either order,
and sometimes only one of them arrives at all. The buffer holds the latest
of each and emits one merged map:

- deep link already buffered when attribution arrives: merge immediately;
- attribution alone: merge when the debounce window expires;
- deep link arriving later: cancel the window and merge immediately.

Both entry points may be called from concurrent tasks; all buffer and timer
mutation happens under one asyncio.Lock. Callbacks run outside the lock.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Mapping

from loguru import logger

from ..pipeline.merge import merge_deeplink
from .gateway import stringify_values
from .store import DataStore

MERGE_DEBOUNCE_SECONDS = 2.5

MapCallback = Callable[[dict[str, str]], "Awaitable[None] | None"]


async def _notify(callback: MapCallback | None, data: dict[str, str]) -> None:
    if callback is None:
        return
    result = callback(data)
    if inspect.isawaitable(result):
        await result


class AttributionBuffer:
    """One instance per process; close() cancels a pending debounce."""

    def __init__(
        self,
        store: DataStore,
        on_resolved: MapCallback | None = None,
        on_deeplink: MapCallback | None = None,
        debounce_seconds: float = MERGE_DEBOUNCE_SECONDS,
    ) -> None:
        self.store = store
        self.on_resolved = on_resolved
        self.on_deeplink = on_deeplink
        self.debounce_seconds = debounce_seconds
        self._lock = asyncio.Lock()
        self._attribution: dict[str, str] | None = None
        self._deeplink: dict[str, str] | None = None
        self._timer: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        """True while a debounce window is armed."""
        return self._timer is not None and not self._timer.done()

    async def receive_attribution(self, data: Mapping[Any, Any]) -> None:
        values = stringify_values(data)
        self.store.save_attribution(values)
        merged: dict[str, str] | None = None
        async with self._lock:
            self._attribution = values
            if self._deeplink is not None:
                merged = self._merge_locked()
            else:
                self._arm_timer_locked()
        logger.debug(f"Attribution buffered ({len(values)} keys), merged={merged is not None}")
        if merged is not None:
            await _notify(self.on_resolved, merged)

    async def receive_attribution_failure(self, description: str) -> None:
        """SDK conversion failure: buffered as attribution flagged with an error."""
        await self.receive_attribution({"error": True, "error_desc": description})

    async def receive_deeplink(self, data: Mapping[Any, Any]) -> None:
        if self.store.is_installed():
            logger.debug("Deep link ignored: install already completed")
            return
        values = stringify_values(data)
        self.store.save_deeplink(values)
        merged: dict[str, str] | None = None
        async with self._lock:
            self._deeplink = values
            self._cancel_timer_locked()
            if self._attribution is not None:
                merged = self._merge_locked()
        await _notify(self.on_deeplink, values)
        if merged is not None:
            await _notify(self.on_resolved, merged)

    async def close(self) -> None:
        async with self._lock:
            self._cancel_timer_locked()

    def _merge_locked(self) -> dict[str, str]:
        self._cancel_timer_locked()
        merged = merge_deeplink(self._attribution or {}, self._deeplink or {})
        self._attribution = merged
        self.store.save_attribution(merged)
        return merged

    def _arm_timer_locked(self) -> None:
        self._cancel_timer_locked()
        self._timer = asyncio.create_task(self._expire())

    def _cancel_timer_locked(self) -> None:
        if self._timer is not None and self._timer is not asyncio.current_task():
            self._timer.cancel()
        self._timer = None

    async def _expire(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        async with self._lock:
            if self._timer is not asyncio.current_task():
                return
            self._timer = None
            merged = self._merge_locked()
        logger.debug("Debounce expired without deep link; emitting attribution")
        await _notify(self.on_resolved, merged)
