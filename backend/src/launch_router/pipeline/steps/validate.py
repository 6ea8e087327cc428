"""Validate step: consult the remote marker before trusting attribution."""

from __future__ import annotations

from loguru import logger

from ...services.errors import GatewayError
from ...services.gateway import NetworkGateway
from ..context import PipelineContext
from ..outcome import Outcome
from .base import Step


class ValidateStep(Step):
    name = "validate"

    def __init__(self, gateway: NetworkGateway) -> None:
        self.gateway = gateway

    async def execute(self, context: PipelineContext) -> None:
        if not context.has_attribution:
            return
        try:
            ok = await self.gateway.validate()
        except GatewayError as e:
            logger.warning(f"Validate failed, falling back to catalog: {e}")
            context.set_outcome(Outcome.go_to_main())
            return
        if not ok:
            logger.info("Remote marker rejected attribution")
            context.set_outcome(Outcome.go_to_main())
