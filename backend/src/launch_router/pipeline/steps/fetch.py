"""Fetch step: resolve the destination, degrading to the saved one on failure."""

from __future__ import annotations

from loguru import logger

from ...services.errors import GatewayError
from ...services.gateway import NetworkGateway
from ...services.store import DataStore
from ..context import PipelineContext
from ..outcome import Outcome
from .base import Step

ACTIVE_MODE = "Active"


class FetchStep(Step):
    name = "fetch"

    def __init__(self, gateway: NetworkGateway, store: DataStore) -> None:
        self.gateway = gateway
        self.store = store

    async def execute(self, context: PipelineContext) -> None:
        try:
            url = await self.gateway.fetch_destination(context.attribution)
        except GatewayError as e:
            if context.resolved_url:
                logger.warning(f"Destination lookup failed, keeping saved url: {e}")
                return
            logger.warning(f"Destination lookup failed with no saved url: {e}")
            context.set_outcome(Outcome.go_to_main())
            return

        context.resolved_url = url
        context.resolved_mode = ACTIVE_MODE
        context.is_first_run = False
        self.store.save_url(url)
        self.store.save_mode(ACTIVE_MODE)
        self.store.mark_installed()
