"""Pipeline execution engine: runs the launch steps in fixed order."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Sequence

from loguru import logger

from ..services.gateway import NetworkGateway
from ..services.store import DataStore
from .context import PipelineContext
from .outcome import Outcome
from .steps import (
    FetchStep,
    LoadStep,
    OrganicStep,
    ResolveStep,
    SavedURLStep,
    Step,
    TempURLStep,
    ValidateStep,
)

# Event callback: (event_kind, data) -> None
EventCallback = Callable[[str, dict[str, Any]], None]


def build_default_steps(
    store: DataStore,
    gateway: NetworkGateway,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[Step]:
    """Load -> Validate -> TempURL -> SavedURL -> Organic -> Fetch -> Resolve."""
    return [
        LoadStep(store),
        ValidateStep(gateway),
        TempURLStep(store),
        SavedURLStep(),
        OrganicStep(gateway, sleep=sleep),
        FetchStep(gateway, store),
        ResolveStep(),
    ]


class PipelineEngine:
    """Drives an ordered list of steps over one context until a step sets the outcome."""

    def __init__(self, steps: Sequence[Step], on_event: EventCallback | None = None) -> None:
        if not steps:
            raise ValueError("Pipeline needs at least one step")
        self.steps = list(steps)
        self._on_event = on_event or (lambda k, d: None)

    async def run(self, context: PipelineContext | None = None) -> PipelineContext:
        ctx = context or PipelineContext()
        for step in self.steps:
            if ctx.is_resolved:
                break
            self._on_event("StepStarted", {"step": step.name})
            logger.debug(f"[pipeline] {step.name}")
            await step.execute(ctx)
            self._on_event("StepCompleted", {"step": step.name, "outcome": ctx.outcome.kind.value})
            if ctx.is_resolved:
                logger.info(f"[pipeline] {step.name} resolved {ctx.outcome.kind.value}")

        if not ctx.is_resolved:
            # A chain without a terminal step still has to answer.
            ctx.set_outcome(Outcome.go_to_main())
        self._on_event("PipelineCompleted", ctx.outcome.to_dict())
        return ctx
