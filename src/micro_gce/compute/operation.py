"""Operation handles for asynchronous server-side mutations.

Every mutating Compute Engine call (insert, patch, delete, ...) answers
with an Operation resource. The handle built from that answer can be
refreshed or polled until the job is ``DONE``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from micro_gce.core.errors import OperationError
from micro_gce.core.result import ApiResult, Callback, noop
from micro_gce.core.service_object import ServiceObject

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5


def wrap_operation(scope: Any, response: Dict[str, Any]) -> "Operation":
    """Build an Operation handle from a mutating call's response body.

    The body itself becomes the handle's metadata.
    """
    name = response.get("name") if isinstance(response, dict) else None
    if not name:
        logger.warning(
            "Response has no operation name",
            extra={"scope": getattr(scope, "name", None)},
        )

    operation = scope.operation(name)
    operation.metadata = response
    return operation


class Operation:
    """An asynchronous job running on the server.

    Example:
        ```python
        result = await autoscaler.delete()
        done = await result.value.wait_for_completion()
        ```
    """

    def __init__(self, scope: Any, name: Optional[str]):
        """Initialize the handle. No request is made.

        Args:
            scope: The zone, or the project for global operations.
            name: Operation name.
        """
        self._scope = scope
        self._name = name
        self.metadata: Dict[str, Any] = {}

        self._service = ServiceObject(
            self,
            parent=scope,
            base_url=scope.operations_url,
            id=name,
            methods=("delete", "exists", "get", "get_metadata"),
        )

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def scope(self) -> Any:
        return self._scope

    @property
    def done(self) -> bool:
        return self.metadata.get("status") == "DONE"

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._service.expose(name)

    async def wait_for_completion(
        self,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        callback: Optional[Callback] = None,
    ) -> ApiResult:
        """Poll until the operation is ``DONE``.

        Args:
            poll_interval: Seconds between polls.
            timeout: Give up after this many seconds; ``None`` waits forever.
            callback: Receives ``(error, metadata, api_response)``.

        Returns:
            The final metadata, or an ``OperationError`` if the operation
            failed or timed out. Request failures are passed on unchanged.
        """
        callback = callback or noop
        interval = DEFAULT_POLL_INTERVAL if poll_interval is None else poll_interval

        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while True:
            result = await self.get_metadata()
            if not result.ok:
                callback(result.error, None, result.api_response)
                return result

            metadata = result.api_response
            if metadata.get("error"):
                error = OperationError.from_metadata(metadata)
                logger.error(
                    f"Operation {self.name} failed: {error}",
                    extra={"operation": self.name, "errors": error.errors},
                )
                callback(error, None, metadata)
                return ApiResult.failure(error, metadata)

            if metadata.get("status") == "DONE":
                logger.info(f"Operation {self.name} completed")
                callback(None, metadata, metadata)
                return ApiResult(value=metadata, api_response=metadata)

            if deadline is not None and loop.time() + interval > deadline:
                error = OperationError(
                    f"Timed out waiting for operation {self.name}",
                    metadata=metadata,
                )
                callback(error, None, metadata)
                return ApiResult.failure(error, metadata)

            logger.debug(
                f"Operation {self.name} is {metadata.get('status')}, polling again in {interval}s"
            )
            await asyncio.sleep(interval)

    def __repr__(self) -> str:
        return f"Operation(name={self.name!r})"
