"""Temp URL step: a destination just delivered by push pre-empts resolution."""

from __future__ import annotations

from ...services.store import DataStore
from ..context import PipelineContext
from .base import Step


class TempURLStep(Step):
    name = "temp_url"

    def __init__(self, store: DataStore) -> None:
        self.store = store

    async def execute(self, context: PipelineContext) -> None:
        temp = self.store.peek_temp_url()
        if not temp:
            return
        context.resolved_url = temp
        context.open_url(temp)
