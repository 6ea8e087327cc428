"""Resolve step: terminal decision from whatever destination is known."""

from __future__ import annotations

from ..context import PipelineContext
from ..outcome import Outcome
from .base import Step


class ResolveStep(Step):
    name = "resolve"

    async def execute(self, context: PipelineContext) -> None:
        if not context.resolved_url:
            context.set_outcome(Outcome.go_to_main())
            return
        context.open_url(context.resolved_url)
