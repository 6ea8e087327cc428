"""Gateway error taxonomy. Steps catch GatewayError and fall back to the catalog."""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for every remote-call failure."""

    def __init__(self, message: str = "", status_code: int | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.status_code = status_code


class BadURL(GatewayError):
    """Endpoint URL could not be constructed. Never retried."""


class RequestFailed(GatewayError):
    """Transport error or a non-2xx status other than 429."""


class DecodeError(GatewayError):
    """Body was not the expected JSON shape."""


class RateLimited(GatewayError):
    """HTTP 429; retried with attempt-scaled backoff."""

    def __init__(self, message: str = "", status_code: int | None = 429) -> None:
        super().__init__(message, status_code)
