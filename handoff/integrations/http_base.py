"""Shared async transport for the external service clients.

Owns the lazily opened httpx.AsyncClient and turns transport failures,
non-200 responses and undecodable bodies into the subclass's error type.
"""

import logging
from typing import Any, Dict, Optional, Type

import httpx

from handoff.errors import HandoffError

logger = logging.getLogger("handoff.integrations.http")


class ServiceClient:
    """Base for clients that talk JSON over HTTP.

    Subclasses set ``service`` (used in error messages) and ``error_class``,
    and return their base URL and headers from ``_client_options``.
    """

    service = "Service"
    error_class: Type[HandoffError] = HandoffError

    def __init__(self, timeout: float):
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _client_options(self) -> Dict[str, Any]:
        return {}

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, **self._client_options())
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _status_error(self, resp: httpx.Response, url: str) -> str:
        return f"{self.service} error {resp.status_code}: {resp.text[:200]}"

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Issue one request; anything but a 200 raises ``error_class``."""
        client = await self._get_client()
        try:
            resp = await getattr(client, method)(url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{self.service}: timeout after {self._timeout}s: {url}")
            raise self.error_class(f"{self.service} timeout: {url}") from e
        except httpx.HTTPError as e:
            logger.error(f"{self.service}: transport error: {e}")
            raise self.error_class(f"{self.service} connection error: {e}") from e

        if resp.status_code != 200:
            logger.error(f"{self.service}: HTTP {resp.status_code}: {url}")
            raise self.error_class(self._status_error(resp, url))
        return resp

    def _json(self, resp: httpx.Response, url: str) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise self.error_class(f"{self.service} returned invalid JSON: {url}") from e
