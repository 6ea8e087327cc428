"""Pydantic models for API request/response."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class LaunchRequest(BaseModel):
    # Run the pipeline on persisted state right away instead of waiting for SDK events
    resolve: bool = False


class AttributionRequest(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


class AttributionFailureRequest(BaseModel):
    description: str = ""


class DeeplinkRequest(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


class PushRequest(BaseModel):
    payload: dict[str, Any] = Field(default_factory=dict)


class PushResponse(BaseModel):
    url: str | None = None


class PushTokenRequest(BaseModel):
    token: str


class ConnectivityRequest(BaseModel):
    connected: bool


class PermissionRequest(BaseModel):
    decision: Literal["allow", "deny", "defer"]


class LaunchState(BaseModel):
    outcome: Literal["pending", "go_to_web", "go_to_main", "show_permission", "offline"]
    url: str | None = None
    offline: bool = False
    started: bool = False
    runs: int = 0
    # Raw deep-link data as soon as it is observed, ahead of the merged attribution
    deeplink: dict[str, str] | None = None
