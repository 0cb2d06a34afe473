from __future__ import annotations

import asyncio
import json
import logging
from http import HTTPStatus
from typing import Any, AsyncIterator, Callable, Optional

import aiohttp
import google.auth
import google.auth.transport.requests


logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class GcpApiError(RuntimeError):
    """A Google API call failed (transport, HTTP status, or undecodable body)."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def is_conflict(self) -> bool:
        return self.status == HTTPStatus.CONFLICT


def _next_page_token(payload: dict[str, Any]) -> Optional[str]:
    return payload.get("nextPageToken") or None


def default_access_token() -> str:
    """Fetch an access token from Application Default Credentials.

    Blocking; callers on the event loop should run it in a thread.
    """

    credentials, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
    credentials.refresh(google.auth.transport.requests.Request())
    if not credentials.token:
        raise GcpApiError("Application Default Credentials returned no access token")
    return credentials.token


class GcpClient:
    """Minimal JSON-over-HTTPS client for Google REST APIs using a bearer token.

    The aiohttp session is owned by the caller; this class only adds the
    Authorization header and turns every failure into `GcpApiError`.
    """

    def __init__(self, *, session: aiohttp.ClientSession, token: str) -> None:
        if not token:
            raise ValueError("token must be provided")
        self._session = session
        self._token = token

    async def request_json(
        self,
        *,
        method: str,
        url: str,
        params: Optional[dict[str, str]] = None,
        body: Optional[dict[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
        }
        kwargs: dict[str, Any] = {"headers": headers}
        if params:
            kwargs["params"] = params
        if body is not None:
            kwargs["json"] = body
        if timeout_seconds is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout_seconds)

        method = method.upper()
        try:
            async with self._session.request(method, url, **kwargs) as resp:
                status = resp.status
                payload = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.debug("GCP request failed (method=%s url=%s)", method, url, exc_info=True)
            raise GcpApiError(f"{method} {url}: {str(exc) or type(exc).__name__}") from exc

        if not (HTTPStatus.OK <= status < HTTPStatus.MULTIPLE_CHOICES):
            raise GcpApiError(
                f"{method} {url}: HTTP {status} {self._error_details(payload)}".strip(),
                status=status,
            )

        if not payload:
            return {}
        try:
            parsed = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GcpApiError(f"{method} {url}: invalid JSON response", status=status) from exc
        if not isinstance(parsed, dict):
            raise GcpApiError(f"{method} {url}: expected a JSON object, got {type(parsed).__name__}", status=status)
        return parsed

    async def get_json(self, url: str, *, params: Optional[dict[str, str]] = None) -> dict[str, Any]:
        return await self.request_json(method="GET", url=url, params=params)

    async def post_json(
        self,
        url: str,
        *,
        body: Optional[dict[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> dict[str, Any]:
        return await self.request_json(method="POST", url=url, body=body, timeout_seconds=timeout_seconds)

    async def iter_pages(
        self,
        url: str,
        *,
        params: Optional[dict[str, str]] = None,
        page_token: Callable[[dict[str, Any]], Optional[str]] = _next_page_token,
        page_param: str = "pageToken",
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield each page of a list call until the API stops returning a token."""

        query = dict(params or {})
        while True:
            payload = await self.get_json(url, params=query or None)
            yield payload

            token = page_token(payload)
            if not token:
                return
            query[page_param] = token

    @staticmethod
    def _error_details(payload: bytes) -> str:
        # Google APIs usually answer {"error": {"code": ..., "message": ...}}
        try:
            parsed = json.loads(payload.decode("utf-8")) if payload else {}
        except (UnicodeDecodeError, json.JSONDecodeError):
            return payload[:200].decode("utf-8", errors="replace")
        error = parsed.get("error") if isinstance(parsed, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return ""
