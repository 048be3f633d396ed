"""HTTP connection to the Compute Engine REST API.

This module provides the shared request layer used by every resource
handle. It owns the HTTP client, attaches credentials, retries transient
failures and translates error statuses into ``ApiError``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Generator, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from micro_gce.core.config import ConnectionConfig
from micro_gce.core.errors import ApiError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class BearerTokenAuth(httpx.Auth):
    """Attach a static OAuth2 access token to every request."""

    def __init__(self, token: str):
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request


def _is_retryable(error: BaseException) -> bool:
    if isinstance(error, ApiError):
        return error.code in RETRYABLE_STATUS_CODES
    return isinstance(error, (httpx.ConnectError, httpx.TimeoutException))


class Connection:
    """Sends requests to the Compute Engine API.

    Every method on a resource handle ends up here. Paths are relative to
    ``api_endpoint`` (for example ``/projects/p/zones/z/autoscalers``).
    """

    def __init__(
        self,
        config: Optional[ConnectionConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        auth: Optional[httpx.Auth] = None,
    ):
        """Initialize the connection.

        Args:
            config: Connection configuration.
            http_client: Optional pre-configured HTTP client.
            auth: Optional httpx auth; defaults to a bearer token when
                ``config.access_token`` is set.
        """
        self.config = config or ConnectionConfig()
        self._client = http_client
        self._owns_client = http_client is None

        if auth is None and self.config.access_token:
            auth = BearerTokenAuth(self.config.access_token)
        self._auth = auth

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self.config.timeout,
                    connect=self.config.connect_timeout,
                ),
                headers={"User-Agent": self.config.user_agent},
            )
        return self._client

    def build_url(self, uri: str) -> str:
        return f"{self.config.api_endpoint.rstrip('/')}/{uri.lstrip('/')}"

    async def request(
        self,
        method: str,
        uri: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method.
            uri: Path relative to the API endpoint.
            params: Query string parameters.
            json: JSON request body.

        Returns:
            The decoded response body (``{}`` for an empty body).

        Raises:
            ApiError: If the API answers with an error status.
            httpx.TransportError: If the request could not be sent.
        """
        url = self.build_url(uri)

        @retry(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(
                min=self.config.retry_min_wait,
                max=self.config.retry_max_wait,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async def _do_request() -> Dict[str, Any]:
            return await self._send(method, url, params=params, json=json)

        return await _do_request()

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]],
        json: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        client = self._get_client()

        logger.debug(f"{method} {url}", extra={"params": params})

        kwargs: Dict[str, Any] = {"params": params, "json": json}
        if self._auth is not None:
            kwargs["auth"] = self._auth

        response = await client.request(method, url, **kwargs)

        if response.status_code >= 400:
            raise ApiError.from_response(response)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise httpx.DecodingError(
                f"Invalid JSON in {response.status_code} response: {e}",
                request=response.request,
            ) from e

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
