"""Project-level entry point to the Compute Engine API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from micro_gce.compute.autoscaler import Autoscaler
from micro_gce.compute.operation import Operation
from micro_gce.compute.zone import Zone
from micro_gce.core.config import ComputeConfig
from micro_gce.core.connection import Connection
from micro_gce.core.result import ApiResult, Callback, noop, split_callback
from micro_gce.core.service_object import call_api

logger = logging.getLogger(__name__)


class Compute:
    """Client for one Google Cloud project.

    Example:
        ```python
        async with Compute(load_config()) as compute:
            zone = compute.zone("us-central1-a")
            result = await zone.autoscaler("autoscaler-name").exists()
        ```
    """

    operations_url = "/global/operations"

    def __init__(
        self,
        config: Optional[ComputeConfig] = None,
        *,
        connection: Optional[Connection] = None,
    ):
        """Initialize the client. No request is made.

        Args:
            config: Client configuration; ``project_id`` is required.
            connection: Optional pre-built connection (shares its HTTP client).

        Raises:
            ValueError: If no project ID is configured.
        """
        self.config = config or ComputeConfig()
        if not self.config.project_id:
            raise ValueError("A project ID is required.")

        self.connection = connection or Connection(self.config.connection)

    @property
    def project_id(self) -> str:
        return self.config.project_id

    @property
    def project_url(self) -> str:
        return self.connection.build_url(f"/projects/{self.project_id}")

    def zone(self, name: str) -> Zone:
        """Get a handle to a zone."""
        return Zone(self, name)

    def operation(self, name: Optional[str]) -> Operation:
        """Get a handle to a global operation."""
        return Operation(self, name)

    async def request(
        self,
        method: str,
        uri: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a request relative to ``/projects/{project_id}``."""
        return await self.connection.request(
            method,
            f"/projects/{self.project_id}{uri}",
            params=params,
            json=json,
        )

    async def get_autoscalers(
        self,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[Callback] = None,
    ) -> ApiResult:
        """List autoscalers across every zone of the project.

        Args:
            options: Query parameters (``filter``, ``maxResults``,
                ``pageToken``).
            callback: Receives ``(error, autoscalers, next_query, api_response)``.

        Returns:
            Result whose value is a list of Autoscaler handles, each bound to
            its zone and carrying its metadata.
        """
        options, callback = split_callback(options, callback)
        callback = callback or noop
        query = dict(options or {})

        result = await call_api(
            self.request("GET", "/aggregated/autoscalers", params=query or None)
        )
        if not result.ok:
            logger.warning(
                f"Aggregated autoscaler listing failed: {result.error}",
                extra={"project_id": self.project_id},
            )
            callback(result.error, None, None, result.api_response)
            return ApiResult.failure(result.error, result.api_response)

        response = result.api_response
        autoscalers: List[Autoscaler] = []
        # Keys look like "zones/us-central1-a".
        for scope, scoped in response.get("items", {}).items():
            zone = self.zone(scope.rsplit("/", 1)[-1])
            for item in scoped.get("autoscalers", []):
                autoscaler = zone.autoscaler(item["name"])
                autoscaler.metadata = item
                autoscalers.append(autoscaler)

        next_query = None
        if response.get("nextPageToken"):
            next_query = {**query, "pageToken": response["nextPageToken"]}

        callback(None, autoscalers, next_query, response)
        return ApiResult(value=autoscalers, next_query=next_query, api_response=response)

    async def close(self) -> None:
        """Close the underlying connection."""
        await self.connection.close()

    async def __aenter__(self) -> "Compute":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"Compute(project_id={self.project_id!r})"
