"""Network gateway: kill-switch validation, install attribution and destination lookup."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Mapping, Protocol

import httpx
from loguru import logger

from ..config import (
    LAUNCH_APP_ID,
    LAUNCH_ATTRIBUTION_BASE_URL,
    LAUNCH_BUNDLE_ID,
    LAUNCH_DESTINATION_URL,
    LAUNCH_DEV_KEY,
    LAUNCH_DEVICE_ID,
    LAUNCH_LOCALE,
    LAUNCH_PROJECT_ID,
    LAUNCH_USER_AGENT,
    LAUNCH_VALIDATE_URL,
)
from .errors import BadURL, DecodeError, GatewayError, RateLimited, RequestFailed

# Wait before the next attempt after a request error; a 429 waits delay * (attempt + 1) instead.
RETRY_DELAYS: tuple[float, ...] = (10.0, 20.0, 40.0)
REQUEST_TIMEOUT = 30.0

Sleep = Callable[[float], Awaitable[None]]
TokenProvider = Callable[[], "str | None"]


class NetworkGateway(Protocol):
    async def validate(self) -> bool: ...

    async def fetch_attribution(self) -> dict[str, str]: ...

    async def fetch_destination(self, attribution: dict[str, str]) -> str: ...


def stringify_values(data: Mapping[Any, Any]) -> dict[str, str]:
    """Coerce JSON or SDK payload values to strings (JSON spelling for bools and null)."""
    out: dict[str, str] = {}
    for key, value in data.items():
        if isinstance(value, bool):
            out[str(key)] = "true" if value else "false"
        elif value is None:
            out[str(key)] = "null"
        else:
            out[str(key)] = str(value)
    return out


def is_valid_url(value: Any) -> bool:
    """True for a non-empty string that parses as an absolute URL."""
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        url = httpx.URL(value.strip())
    except httpx.InvalidURL:
        return False
    return bool(url.scheme and url.host)


def locale_code(locale: str | None) -> str:
    """Two-letter uppercased language code, EN when unknown."""
    code = (locale or "").strip()[:2]
    return code.upper() if len(code) == 2 else "EN"


def _endpoint(raw: str, what: str) -> httpx.URL:
    if not raw:
        raise BadURL(f"No {what} endpoint configured")
    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL as e:
        raise BadURL(f"Invalid {what} endpoint {raw!r}: {e}") from e
    if not (url.scheme and url.host):
        raise BadURL(f"Invalid {what} endpoint {raw!r}")
    return url


def _parse_destination(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError as e:
        raise DecodeError(f"Destination body is not JSON: {e}", resp.status_code) from e
    if not isinstance(data, dict) or data.get("ok") is not True:
        raise DecodeError(f"Destination response not ok: {str(data)[:200]}", resp.status_code)
    url = data.get("url")
    if not isinstance(url, str):
        raise DecodeError("Destination response has no url", resp.status_code)
    return url


class LiveGateway:
    """httpx-backed gateway. Use as an async context manager or call aclose()."""

    def __init__(
        self,
        *,
        token_provider: TokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
        retry_delays: tuple[float, ...] = RETRY_DELAYS,
        validate_url: str = LAUNCH_VALIDATE_URL,
        attribution_base_url: str = LAUNCH_ATTRIBUTION_BASE_URL,
        destination_url: str = LAUNCH_DESTINATION_URL,
        app_id: str = LAUNCH_APP_ID,
        dev_key: str = LAUNCH_DEV_KEY,
        device_id: str = LAUNCH_DEVICE_ID,
        bundle_id: str = LAUNCH_BUNDLE_ID,
        project_id: str | None = LAUNCH_PROJECT_ID,
        locale: str = LAUNCH_LOCALE,
        user_agent: str = LAUNCH_USER_AGENT,
    ) -> None:
        self._token_provider = token_provider or (lambda: None)
        self._transport = transport
        self._sleep = sleep
        self.retry_delays = retry_delays
        self.validate_url = validate_url
        self.attribution_base_url = attribution_base_url.rstrip("/")
        self.destination_url = destination_url
        self.app_id = app_id
        self.dev_key = dev_key
        self.device_id = device_id
        self.bundle_id = bundle_id
        self.project_id = project_id
        self.locale = locale
        self.user_agent = user_agent
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> LiveGateway:
        self._http()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT,
                transport=self._transport,
                headers={"Cache-Control": "no-cache", "User-Agent": self.user_agent},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def validate(self) -> bool:
        """Read the remote marker; true only when it holds a usable URL."""
        url = _endpoint(self.validate_url, "validate")
        try:
            resp = await self._http().get(url)
        except httpx.RequestError as e:
            raise RequestFailed(f"Validate request failed: {e}") from e
        if not resp.is_success:
            raise RequestFailed(f"Validate returned HTTP {resp.status_code}", resp.status_code)
        try:
            value = resp.json()
        except ValueError:
            value = resp.text
        return is_valid_url(value)

    async def fetch_attribution(self) -> dict[str, str]:
        """GET install attribution for this device."""
        url = _endpoint(f"{self.attribution_base_url}/id{self.app_id}", "attribution")
        params = {"devkey": self.dev_key, "device_id": self.device_id}
        try:
            resp = await self._http().get(url, params=params, headers={"Accept": "application/json"})
        except httpx.RequestError as e:
            raise RequestFailed(f"Attribution request failed: {e}") from e
        if not resp.is_success:
            raise RequestFailed(f"Attribution returned HTTP {resp.status_code}", resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(f"Attribution body is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise DecodeError("Attribution body is not a JSON object")
        return stringify_values(data)

    def destination_payload(self, attribution: dict[str, str]) -> dict[str, Any]:
        body: dict[str, Any] = dict(attribution)
        body["os"] = "iOS"
        body["af_id"] = self.device_id
        body["bundle_id"] = self.bundle_id
        body["firebase_project_id"] = self.project_id
        body["store_id"] = f"id{self.app_id}"
        body["push_token"] = self._token_provider()
        body["locale"] = locale_code(self.locale)
        return body

    async def fetch_destination(self, attribution: dict[str, str]) -> str:
        """POST the enriched attribution and return the destination URL.

        Up to len(retry_delays) attempts. Request errors (transport or content
        decoding) wait `delay` before the next attempt, 429 waits
        `delay * (attempt + 1)`. Any other non-2xx status or a malformed JSON
        body fails immediately.
        """
        url = _endpoint(self.destination_url, "destination")
        body = self.destination_payload(attribution)
        last: GatewayError | None = None

        for i, delay in enumerate(self.retry_delays):
            try:
                resp = await self._http().post(url, json=body)
            except httpx.RequestError as e:
                last = RequestFailed(f"Destination request failed: {e}")
                logger.warning(f"[attempt {i + 1}] destination request error: {e}")
                if i < len(self.retry_delays) - 1:
                    await self._sleep(delay)
                continue

            if resp.status_code == 429:
                last = RateLimited(f"Destination rate limited on attempt {i + 1}")
                wait = delay * (i + 1)
                logger.warning(f"[attempt {i + 1}] destination HTTP 429, waiting {wait:.0f}s")
                await self._sleep(wait)
                continue
            if not resp.is_success:
                raise RequestFailed(f"Destination returned HTTP {resp.status_code}", resp.status_code)
            return _parse_destination(resp)

        raise last or RequestFailed("Destination lookup made no attempts")
