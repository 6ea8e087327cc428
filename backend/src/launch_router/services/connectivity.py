"""Connectivity probe loop feeding transitions to a callback."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import httpx
from loguru import logger

from ..config import LAUNCH_CONNECTIVITY_URL


class ConnectivityMonitor:
    """Polls a probe URL and reports only changes (the first result always counts as one)."""

    def __init__(
        self,
        on_change: Callable[[bool], None],
        *,
        probe_url: str = LAUNCH_CONNECTIVITY_URL,
        interval: float = 5.0,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.on_change = on_change
        self.probe_url = probe_url
        self.interval = interval
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep
        self._last: bool | None = None
        self._task: asyncio.Task[None] | None = None

    async def probe(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(self.probe_url)
        except httpx.TransportError as e:
            logger.debug(f"Connectivity probe failed: {e}")
            return False
        return resp.status_code < 500

    async def check(self) -> bool:
        connected = await self.probe()
        if connected != self._last:
            self._last = connected
            self.on_change(connected)
        return connected

    async def run(self) -> None:
        while True:
            await self.check()
            await self._sleep(self.interval)

    def start(self) -> asyncio.Task[None]:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
