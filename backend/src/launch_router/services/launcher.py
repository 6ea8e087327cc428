"""Launch orchestration: runs the pipeline once per launch and publishes the outcome.

- A hard timeout forces GoToMain when nothing terminal arrives in time.
- Each merged attribution cancels any in-flight run and starts a new one.
- Connectivity loss before a terminal outcome surfaces Offline; regaining
  connectivity clears it. Neither touches an outcome already reached.
- Whichever of pipeline and timeout finishes first wins; the other is
  suppressed, so the outcome is published exactly once.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from loguru import logger

from ..pipeline import Outcome, OutcomeKind, PipelineContext, PipelineEngine, build_default_steps
from .gateway import NetworkGateway
from .push import PushIngestor
from .reconciliation import AttributionBuffer
from .store import DataStore

LAUNCH_TIMEOUT_SECONDS = 30.0

EngineFactory = Callable[[], PipelineEngine]


class LaunchOrchestrator:
    """Constructed once per process, shared by every caller that feeds launch events."""

    def __init__(
        self,
        store: DataStore,
        gateway: NetworkGateway,
        *,
        timeout_seconds: float = LAUNCH_TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        engine_factory: EngineFactory | None = None,
        debounce_seconds: float | None = None,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep
        self._engine_factory = engine_factory or (
            lambda: PipelineEngine(build_default_steps(store, gateway, sleep=sleep))
        )
        buffer_kwargs: dict[str, Any] = {}
        if debounce_seconds is not None:
            buffer_kwargs["debounce_seconds"] = debounce_seconds
        self.buffer = AttributionBuffer(
            store,
            on_resolved=self.on_attribution_resolved,
            on_deeplink=self.on_deeplink_observed,
            **buffer_kwargs,
        )
        self.push = PushIngestor(store)

        self._outcome = Outcome.pending()
        self._offline = False
        self._deeplink: dict[str, str] | None = None
        self._started = False
        self._runs = 0
        self._pipeline_task: asyncio.Task[None] | None = None
        self._timeout_task: asyncio.Task[None] | None = None
        self._done: asyncio.Future[Outcome] | None = None
        self._subscribers: list[asyncio.Queue[dict[str, Any]]] = []

    # -- state -------------------------------------------------------------

    @property
    def outcome(self) -> Outcome:
        return self._outcome

    @property
    def offline(self) -> bool:
        return self._offline

    def current(self) -> Outcome:
        """Outcome as the presentation layer should see it right now."""
        if self._offline and not self._outcome.is_terminal:
            return Outcome.offline()
        return self._outcome

    def state(self) -> dict[str, Any]:
        data = self.current().to_dict()
        data.update(
            {"offline": self._offline, "started": self._started, "runs": self._runs, "deeplink": self._deeplink}
        )
        return data

    def subscribe(self) -> asyncio.Queue[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _publish(self) -> None:
        snapshot = self.state()
        for queue in self._subscribers:
            queue.put_nowait(snapshot)

    def _future(self) -> asyncio.Future[Outcome]:
        if self._done is None:
            self._done = asyncio.get_running_loop().create_future()
        return self._done

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        """Arm the launch timeout. Calling again is a no-op."""
        if self._started:
            return
        self._started = True
        self._future()
        self._timeout_task = asyncio.create_task(self._expire())
        logger.info(f"Launch started, timeout {self.timeout_seconds:.0f}s")

    async def wait_outcome(self) -> Outcome:
        return await asyncio.shield(self._future())

    async def on_attribution_resolved(self, merged: dict[str, str]) -> None:
        logger.info(f"Attribution resolved ({len(merged)} keys); running pipeline")
        self.execute_pipeline()

    def on_deeplink_observed(self, data: dict[str, str]) -> None:
        """Expose raw deep-link data before the merge so the client can route early."""
        self._deeplink = dict(data)
        self._publish()

    def execute_pipeline(self) -> asyncio.Task[None]:
        """Start a fresh run from the top, cancelling the one in flight."""
        if self._pipeline_task is not None and not self._pipeline_task.done():
            logger.info("Cancelling in-flight pipeline run")
            self._pipeline_task.cancel()
        self._future()
        self._runs += 1
        self._pipeline_task = asyncio.create_task(self._run_pipeline())
        return self._pipeline_task

    async def run_once(self) -> Outcome:
        """Run the pipeline on persisted state and wait for the launch outcome."""
        self.execute_pipeline()
        return await self.wait_outcome()

    async def close(self) -> None:
        await self.buffer.close()
        for task in (self._pipeline_task, self._timeout_task):
            if task is not None and not task.done():
                task.cancel()

    async def _run_pipeline(self) -> None:
        engine = self._engine_factory()
        try:
            ctx = await engine.run(PipelineContext())
            outcome = ctx.outcome
        except Exception:
            logger.exception("Pipeline run crashed; falling back to catalog")
            outcome = Outcome.go_to_main()
        if asyncio.current_task() is not self._pipeline_task:
            return
        self._apply(outcome)

    async def _expire(self) -> None:
        await self._sleep(self.timeout_seconds)
        if self._outcome.is_terminal:
            return
        logger.warning("Launch timed out; falling back to catalog")
        if self._pipeline_task is not None and not self._pipeline_task.done():
            self._pipeline_task.cancel()
        self._apply(Outcome.go_to_main())

    def _apply(self, outcome: Outcome) -> None:
        if self._outcome.is_terminal:
            logger.debug(f"Suppressed late outcome {outcome.kind.value}")
            return
        if self._timeout_task is not None and self._timeout_task is not asyncio.current_task():
            self._timeout_task.cancel()
        self._outcome = outcome
        if outcome.url and outcome.kind in (OutcomeKind.GO_TO_WEB, OutcomeKind.SHOW_PERMISSION):
            # Fallback slot only; a push URL must not replace the resolved destination
            self.store.save_last_opened(outcome.url)
        self.store.clear_temp_url()
        logger.info(f"Launch outcome: {outcome.kind.value} {outcome.url or ''}".rstrip())
        future = self._future()
        if not future.done():
            future.set_result(outcome)
        self._publish()

    # -- external signals ----------------------------------------------------

    def set_connectivity(self, connected: bool) -> None:
        if not connected and not self._offline and not self._outcome.is_terminal:
            logger.warning("Connectivity lost before launch resolved")
            self._offline = True
            self._publish()
        elif connected and self._offline:
            logger.info("Connectivity restored")
            self._offline = False
            self._publish()

    def allow_permission(self, granted: bool) -> Outcome:
        """Record the prompt's answer and continue to the destination."""
        self.store.save_permission(granted=granted, blocked=not granted)
        return self._leave_permission_prompt()

    def defer_permission(self) -> Outcome:
        """Dismiss the prompt without a decision; it may be shown again after the cooldown."""
        self.store.save_permission(granted=False, blocked=False)
        return self._leave_permission_prompt()

    def _leave_permission_prompt(self) -> Outcome:
        if self._outcome.kind is OutcomeKind.SHOW_PERMISSION and self._outcome.url:
            self._outcome = Outcome.go_to_web(self._outcome.url)
            self._publish()
        return self._outcome
