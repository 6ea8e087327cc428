"""API routes - launch events in, launch outcome out."""

from __future__ import annotations

import json
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from ..models import (
    AttributionFailureRequest,
    AttributionRequest,
    ConnectivityRequest,
    DeeplinkRequest,
    LaunchRequest,
    LaunchState,
    PermissionRequest,
    PushRequest,
    PushResponse,
    PushTokenRequest,
)
from ..services.launcher import LaunchOrchestrator

router = APIRouter(prefix="/api", tags=["api"])


def get_orchestrator(request: Request) -> LaunchOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(503, "Launch core not initialised")
    return orchestrator


@router.post("/launch", response_model=LaunchState)
async def api_launch(body: LaunchRequest, orch: LaunchOrchestrator = Depends(get_orchestrator)):
    """Start the launch (arms the timeout). With resolve=true also runs the pipeline now."""
    orch.start()
    if body.resolve:
        orch.execute_pipeline()
    return LaunchState(**orch.state())


@router.post("/attribution", response_model=LaunchState)
async def api_attribution(body: AttributionRequest, orch: LaunchOrchestrator = Depends(get_orchestrator)):
    """Attribution SDK success data."""
    await orch.buffer.receive_attribution(body.data)
    return LaunchState(**orch.state())


@router.post("/attribution/failure", response_model=LaunchState)
async def api_attribution_failure(
    body: AttributionFailureRequest, orch: LaunchOrchestrator = Depends(get_orchestrator)
):
    """Attribution SDK failure; buffered as error-flagged attribution."""
    await orch.buffer.receive_attribution_failure(body.description)
    return LaunchState(**orch.state())


@router.post("/deeplink", response_model=LaunchState)
async def api_deeplink(body: DeeplinkRequest, orch: LaunchOrchestrator = Depends(get_orchestrator)):
    """Resolved deep-link data."""
    await orch.buffer.receive_deeplink(body.data)
    return LaunchState(**orch.state())


@router.post("/push", response_model=PushResponse)
async def api_push(body: PushRequest, orch: LaunchOrchestrator = Depends(get_orchestrator)):
    """Remote notification payload. Returns the extracted destination, if any."""
    return PushResponse(url=orch.push.ingest(body.payload))


@router.post("/push-token", status_code=204)
async def api_push_token(body: PushTokenRequest, orch: LaunchOrchestrator = Depends(get_orchestrator)):
    if not body.token.strip():
        raise HTTPException(400, "Empty push token")
    orch.push.register_token(body.token.strip())


@router.post("/connectivity", response_model=LaunchState)
async def api_connectivity(body: ConnectivityRequest, orch: LaunchOrchestrator = Depends(get_orchestrator)):
    orch.set_connectivity(body.connected)
    return LaunchState(**orch.state())


@router.post("/permission", response_model=LaunchState)
async def api_permission(body: PermissionRequest, orch: LaunchOrchestrator = Depends(get_orchestrator)):
    """Answer to the notification-permission prompt."""
    if body.decision == "defer":
        orch.defer_permission()
    else:
        orch.allow_permission(granted=body.decision == "allow")
    return LaunchState(**orch.state())


@router.get("/outcome", response_model=LaunchState)
async def api_outcome(orch: LaunchOrchestrator = Depends(get_orchestrator)):
    return LaunchState(**orch.state())


@router.get("/outcome/stream")
async def api_outcome_stream(orch: LaunchOrchestrator = Depends(get_orchestrator)):
    """SSE stream of launch state changes; ends once a terminal outcome is sent."""

    async def event_generator() -> AsyncGenerator[str, None]:
        queue = orch.subscribe()
        try:
            state = orch.state()
            yield json.dumps(state)
            while state["outcome"] in ("pending", "offline"):
                state = await queue.get()
                yield json.dumps(state)
        finally:
            orch.unsubscribe(queue)

    return EventSourceResponse(event_generator())
