# =============================================================================
# core/http.py  -  Shared REST plumbing for the upstream API clients
# =============================================================================
#
# Every adapter client (core/slack.py, core/brasil_api.py, ...) subclasses
# RestClient.  It owns the base URL and auth headers, sends one request,
# and turns the response into parsed JSON or an UpstreamError.
#
# DEADLINES:
#   The httpx client is created with timeout=None.  The deadline belongs to
#   RequestGovernor.with_timeout(), which cancels the request task; httpx
#   then closes the connection, so the network call is really aborted.
# =============================================================================

import logging
from typing import Any, Optional

import httpx

from core.errors import UpstreamError

logger = logging.getLogger(__name__)

# Upstream error bodies can be large HTML pages; keep messages readable.
_MAX_DETAIL_CHARS = 500


class RestClient:
    """Minimal async JSON client for one upstream API."""

    def __init__(
        self,
        base_url: str,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = {"Accept": "application/json", **(headers or {})}
        self._transport = transport

    def _client(self, headers: Optional[dict[str, str]] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={**self.headers, **(headers or {})},
            timeout=None,
            transport=self._transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
        not_found: Optional[str] = None,
        expect_body: bool = True,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Args:
            not_found: If set, a 404 returns {"error": not_found} instead of
                raising, matching how lookups report a missing record.
            expect_body: False for endpoints that answer 204 / empty bodies;
                the call then returns None on success.

        Raises:
            UpstreamError: non-2xx status, or a body that is not JSON.
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s", method, url, params)
        async with self._client(headers) as client:
            response = await client.request(method, url, params=params, json=json)

        if response.status_code == 404 and not_found is not None:
            return {"error": not_found}
        if response.is_error:
            raise UpstreamError(
                response.status_code,
                response.reason_phrase,
                response.text[:_MAX_DETAIL_CHARS],
            )
        if not expect_body or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise UpstreamError(
                response.status_code,
                "malformed JSON response",
                response.text[:_MAX_DETAIL_CHARS],
            ) from None

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)
