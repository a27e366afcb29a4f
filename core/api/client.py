"""Thin async HTTP client for the webhook backend. Every request carries the session token."""

import json
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Transport failure or non-2xx response from the backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApiClient:
    """Shared httpx.AsyncClient bound to the webhook base URL and session token."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"token": token},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET path and return the decoded JSON body. Raises ApiError."""
        resp = await self._request("GET", path, params=params)
        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise ApiError(f"Invalid JSON from {path}", resp.status_code) from e

    async def send_json(self, method: str, path: str, payload: Any) -> Any:
        """Send a JSON body. Returns the decoded response, or {} when the body is not JSON."""
        resp = await self._request(method, path, json=payload)
        if not resp.content:
            return {}
        try:
            return resp.json()
        except json.JSONDecodeError:
            # Webhooks often answer 200 with a plain-text body
            return {}

    async def upload(
        self, path: str, filename: str, content: bytes, mime_type: str
    ) -> Any:
        """POST a multipart 'file' field. Returns decoded JSON."""
        resp = await self._request(
            "POST", path, files={"file": (filename, content, mime_type)}
        )
        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise ApiError(f"Invalid JSON from {path}", resp.status_code) from e

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out", method, path)
            raise ApiError(f"Timeout calling {path}") from e
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(str(e)) from e
        if resp.status_code >= 400:
            logger.warning("%s %s -> HTTP %d", method, path, resp.status_code)
            raise ApiError(f"HTTP {resp.status_code} from {path}", resp.status_code)
        return resp
