"""Zone scope: factory for zonal resources and zonal operations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, List, Optional

from micro_gce.compute.autoscaler import Autoscaler
from micro_gce.compute.operation import Operation, wrap_operation
from micro_gce.core.result import ApiResult, Callback, noop, split_callback
from micro_gce.core.service_object import ServiceObject, call_api

if TYPE_CHECKING:
    from micro_gce.compute.compute import Compute

logger = logging.getLogger(__name__)

# Shorthand config keys accepted by create_autoscaler.
POLICY_SHORTHANDS = ("cool_down", "cpu", "load_balance", "max_replicas", "min_replicas")


def build_autoscaler_body(
    project_url: str,
    zone: str,
    name: str,
    config: Dict[str, Any],
) -> Dict[str, Any]:
    """Translate create_autoscaler's config into an Autoscaler resource body.

    ``cpu`` and ``load_balance`` are percentages; the API wants fractions.
    A bare ``target`` names an instance group manager in the same zone.
    """
    body = {k: v for k, v in config.items() if k not in POLICY_SHORTHANDS}
    body["name"] = name

    policy: Dict[str, Any] = dict(body.get("autoscalingPolicy") or {})
    if config.get("cool_down") is not None:
        policy["coolDownPeriodSec"] = config["cool_down"]
    if config.get("cpu") is not None:
        policy["cpuUtilization"] = {"utilizationTarget": config["cpu"] / 100}
    if config.get("load_balance") is not None:
        policy["loadBalancingUtilization"] = {
            "utilizationTarget": config["load_balance"] / 100
        }
    if config.get("max_replicas") is not None:
        policy["maxNumReplicas"] = config["max_replicas"]
    if config.get("min_replicas") is not None:
        policy["minNumReplicas"] = config["min_replicas"]
    if policy:
        body["autoscalingPolicy"] = policy

    target = body["target"]
    if "/zones/" not in target:
        body["target"] = f"{project_url}/zones/{zone}/instanceGroupManagers/{target}"

    return body


class Zone:
    """A Compute Engine zone.

    Exposes ``exists``, ``get`` and ``get_metadata`` for the zone resource
    itself, and builds handles for the resources living in it.
    """

    operations_url = "/operations"

    def __init__(self, compute: "Compute", name: str):
        """Initialize the zone. No request is made.

        Args:
            compute: The project-level client.
            name: Zone name, e.g. ``us-central1-a``.
        """
        self._compute = compute
        self._name = name
        self.metadata: Dict[str, Any] = {}

        self._service = ServiceObject(
            self,
            parent=compute,
            base_url="/zones",
            id=name,
            methods=("exists", "get", "get_metadata"),
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def compute(self) -> "Compute":
        return self._compute

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._service.expose(name)

    def autoscaler(self, name: str) -> Autoscaler:
        """Get a handle to an autoscaler in this zone."""
        return Autoscaler(self, name)

    def operation(self, name: Optional[str]) -> Operation:
        """Get a handle to a zonal operation."""
        return Operation(self, name)

    async def request(
        self,
        method: str,
        uri: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a request relative to ``/zones/{name}``."""
        return await self._service.request(method, uri, params=params, json=json)

    async def create_autoscaler(
        self,
        name: str,
        config: Dict[str, Any],
        callback: Optional[Callback] = None,
    ) -> ApiResult:
        """Create an autoscaler in this zone.

        Args:
            name: Name of the autoscaler.
            config: Autoscaler resource fields. The shorthands ``cool_down``
                (seconds), ``cpu`` and ``load_balance`` (target percentages),
                ``max_replicas`` and ``min_replicas`` are turned into an
                ``autoscalingPolicy``. ``target`` is required.
            callback: Receives ``(error, autoscaler, operation, api_response)``.

        Returns:
            Result whose value is the new Autoscaler and whose ``operation``
            tracks the insert.

        Raises:
            ValueError: If the name or target is missing.
        """
        callback = callback or noop

        if not name or not isinstance(name, str):
            raise ValueError("A name is required.")
        if not config or not config.get("target"):
            raise ValueError("A target is required.")

        body = build_autoscaler_body(self.compute.project_url, self.name, name, config)

        logger.info(
            f"Creating autoscaler {name}",
            extra={"zone": self.name, "target": body["target"]},
        )

        result = await call_api(self.request("POST", "/autoscalers", json=body))
        if not result.ok:
            callback(result.error, None, None, result.api_response)
            return ApiResult.failure(result.error, result.api_response)

        autoscaler = self.autoscaler(name)
        operation = wrap_operation(self, result.api_response)

        callback(None, autoscaler, operation, result.api_response)
        return ApiResult(
            value=autoscaler,
            operation=operation,
            api_response=result.api_response,
        )

    async def get_autoscalers(
        self,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[Callback] = None,
    ) -> ApiResult:
        """List one page of autoscalers in this zone.

        Args:
            options: Query parameters (``filter``, ``maxResults``,
                ``pageToken``).
            callback: Receives ``(error, autoscalers, next_query, api_response)``.

        Returns:
            Result whose value is a list of Autoscaler handles carrying their
            metadata. ``next_query`` holds the options for the next page, or
            ``None`` on the last one.
        """
        options, callback = split_callback(options, callback)
        callback = callback or noop
        query = dict(options or {})

        result = await call_api(self.request("GET", "/autoscalers", params=query or None))
        if not result.ok:
            callback(result.error, None, None, result.api_response)
            return ApiResult.failure(result.error, result.api_response)

        response = result.api_response
        autoscalers: List[Autoscaler] = []
        for item in response.get("items", []):
            autoscaler = self.autoscaler(item["name"])
            autoscaler.metadata = item
            autoscalers.append(autoscaler)

        next_query = None
        if response.get("nextPageToken"):
            next_query = {**query, "pageToken": response["nextPageToken"]}

        callback(None, autoscalers, next_query, response)
        return ApiResult(value=autoscalers, next_query=next_query, api_response=response)

    async def iter_autoscalers(
        self, options: Optional[Dict[str, Any]] = None
    ) -> AsyncIterator[Autoscaler]:
        """Iterate over every autoscaler in this zone, page by page.

        Unlike the other operations, a failed page raises its error.
        """
        query: Optional[Dict[str, Any]] = dict(options or {})
        while query is not None:
            result = await self.get_autoscalers(query)
            for autoscaler in result.unwrap():
                yield autoscaler
            query = result.next_query

    def __repr__(self) -> str:
        return f"Zone(name={self.name!r})"
