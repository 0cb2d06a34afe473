from __future__ import annotations

from typing import Any, Optional

from gcping.services.gcp_client import GcpApiError, GcpClient


class FakeGcpClient(GcpClient):
    """GcpClient whose HTTP calls are answered from canned payloads.

    `responses` maps a URL to a list of payloads (or exceptions) handed out in
    order, one per call. Every call is recorded in `calls`.
    """

    def __init__(self, responses: Optional[dict[str, list[Any]]] = None) -> None:
        super().__init__(session=None, token="test-token")  # type: ignore[arg-type]
        self.responses = {url: list(items) for url, items in (responses or {}).items()}
        self.calls: list[dict[str, Any]] = []

    def _next(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        self.calls.append({"method": method, "url": url, **kwargs})
        queue = self.responses.get(url)
        if not queue:
            raise GcpApiError(f"{method} {url}: HTTP 404", status=404)
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def request_json(
        self,
        *,
        method: str,
        url: str,
        params: Optional[dict[str, str]] = None,
        body: Optional[dict[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> dict[str, Any]:
        return self._next(method.upper(), url, params=dict(params) if params else None, body=body)
