"""Saved URL step: without attribution, reuse the last resolved destination."""

from __future__ import annotations

from ..context import PipelineContext
from ..outcome import Outcome
from .base import Step


class SavedURLStep(Step):
    name = "saved_url"

    async def execute(self, context: PipelineContext) -> None:
        if context.has_attribution:
            return
        if context.resolved_url:
            context.open_url(context.resolved_url)
        else:
            context.set_outcome(Outcome.go_to_main())
