"""Organic step: give delayed attribution a grace period, then refetch it."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from loguru import logger

from ...services.errors import GatewayError
from ...services.gateway import NetworkGateway
from ..context import PipelineContext
from ..merge import merge_deeplink
from ..outcome import Outcome
from .base import Step

ORGANIC_GRACE_SECONDS = 5.0


class OrganicStep(Step):
    """Only acts on the first run of an organic install."""

    name = "organic"

    def __init__(
        self,
        gateway: NetworkGateway,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        grace_seconds: float = ORGANIC_GRACE_SECONDS,
    ) -> None:
        self.gateway = gateway
        self.sleep = sleep
        self.grace_seconds = grace_seconds

    async def execute(self, context: PipelineContext) -> None:
        if not (context.is_first_run and context.is_organic):
            return
        await self.sleep(self.grace_seconds)
        try:
            fetched = await self.gateway.fetch_attribution()
        except GatewayError as e:
            logger.warning(f"Organic attribution refetch failed: {e}")
            context.set_outcome(Outcome.go_to_main())
            return
        context.attribution = merge_deeplink(fetched, context.deeplink)
