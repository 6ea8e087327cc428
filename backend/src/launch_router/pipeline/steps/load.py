"""Load step: seed the context from the persisted snapshot."""

from __future__ import annotations

from ...services.store import DataStore
from ..context import PipelineContext
from .base import Step


class LoadStep(Step):
    name = "load"

    def __init__(self, store: DataStore) -> None:
        self.store = store

    async def execute(self, context: PipelineContext) -> None:
        data = self.store.load()
        context.attribution = dict(data.attribution)
        context.deeplink = dict(data.deeplink)
        context.resolved_url = data.url
        context.resolved_mode = data.mode
        context.is_first_run = data.is_first_run
        context.perm_granted = data.perm_granted
        context.perm_blocked = data.perm_blocked
        context.perm_date = data.perm_date
