"""Autoscaler resource handle.

Autoscalers automatically resize the managed instance group they target
according to an autoscaling policy. This module manages the policy
resource; the scaling itself happens inside Compute Engine.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from micro_gce.compute.operation import wrap_operation
from micro_gce.core.result import ApiResult, Callback, noop, split_callback
from micro_gce.core.service_object import ServiceObject, call_api

if TYPE_CHECKING:
    from micro_gce.compute.zone import Zone

logger = logging.getLogger(__name__)


class Autoscaler:
    """A named autoscaler in a zone.

    Besides ``delete`` and ``set_metadata`` defined here, the handle exposes
    the generic ``create``, ``exists``, ``get`` and ``get_metadata``
    operations of its ``ServiceObject``.

    Example:
        ```python
        compute = Compute(ComputeConfig(project_id="grape-spaceship-123"))
        autoscaler = compute.zone("us-central1-a").autoscaler("autoscaler-name")

        result = await autoscaler.set_metadata({"description": "New description"})
        await result.value.wait_for_completion()
        ```
    """

    def __init__(self, zone: "Zone", name: str):
        """Initialize the handle. No request is made.

        Args:
            zone: Zone this autoscaler belongs to.
            name: Name of the autoscaler.
        """
        self._zone = zone
        self._name = name
        self.metadata: Dict[str, Any] = {}

        self._service = ServiceObject(
            self,
            parent=zone,
            base_url="/autoscalers",
            id=name,
            create_method=zone.create_autoscaler,
            methods=("create", "exists", "get", "get_metadata"),
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def zone(self) -> "Zone":
        return self._zone

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._service.expose(name)

    async def delete(self, callback: Optional[Callback] = None) -> ApiResult:
        """Delete the autoscaler.

        Args:
            callback: Receives ``(error, operation, api_response)``.

        Returns:
            Result whose value is the delete Operation.
        """
        callback = callback or noop

        result = await self._service.delete()
        return self._operation_result(result, callback)

    async def set_metadata(
        self,
        metadata: Optional[Dict[str, Any]] = None,
        callback: Optional[Callback] = None,
    ) -> ApiResult:
        """Patch the autoscaler's configuration.

        The API addresses the autoscaler through the ``autoscaler`` query
        parameter of the collection, and needs ``name`` and ``zone`` in the
        body.

        Args:
            metadata: Fields to change, see the Autoscaler resource.
            callback: Receives ``(error, operation, api_response)``.

        Returns:
            Result whose value is the patch Operation.
        """
        metadata, callback = split_callback(metadata, callback)
        callback = callback or noop

        body = dict(metadata or {})
        body["name"] = self.name
        body["zone"] = self.zone.name

        logger.info(
            f"Updating autoscaler {self.name}",
            extra={"zone": self.zone.name, "fields": sorted(body)},
        )

        result = await call_api(
            self.zone.request(
                "PATCH",
                "/autoscalers",
                params={"autoscaler": self.name},
                json=body,
            )
        )
        return self._operation_result(result, callback)

    def _operation_result(self, result: ApiResult, callback: Callback) -> ApiResult:
        if not result.ok:
            callback(result.error, None, result.api_response)
            return ApiResult.failure(result.error, result.api_response)

        operation = wrap_operation(self.zone, result.api_response)
        callback(None, operation, result.api_response)
        return ApiResult(value=operation, api_response=result.api_response)

    def __repr__(self) -> str:
        return f"Autoscaler(name={self.name!r}, zone={self.zone.name!r})"
