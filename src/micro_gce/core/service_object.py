"""Generic resource client shared by every Compute Engine resource handle.

A ``ServiceObject`` knows how to address one remote resource (a parent, a
base URL and an identifier) and implements the operations that behave the
same for every resource type: create, get, exists, get_metadata,
set_metadata and delete. Resource handles compose one and expose only the
operations listed in their capability table.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, Optional

import httpx

from micro_gce.core.errors import ApiError
from micro_gce.core.result import ApiResult, Callback, noop, split_callback

logger = logging.getLogger(__name__)

CreateMethod = Callable[..., Awaitable[ApiResult]]

GENERIC_METHODS = frozenset(
    {"create", "delete", "exists", "get", "get_metadata", "set_metadata"}
)


async def call_api(request: Awaitable[Dict[str, Any]]) -> ApiResult:
    """Await a request and capture its outcome as an ``ApiResult``.

    The decoded body becomes both ``value`` and ``api_response``. API errors
    keep their parsed body as the raw response; transport errors have none.
    """
    try:
        response = await request
    except ApiError as e:
        return ApiResult.failure(e, e.response)
    except httpx.HTTPError as e:
        return ApiResult.failure(e)
    return ApiResult(value=response, api_response=response)


def is_not_found(error: Optional[BaseException]) -> bool:
    return isinstance(error, ApiError) and error.code == 404


def is_conflict(error: Optional[BaseException]) -> bool:
    return isinstance(error, ApiError) and error.code == 409


class ServiceObject:
    """Generic request/response machinery for a single remote resource.

    Args:
        owner: The resource handle this object works for. ``metadata`` is
            stored on it and it is the primary value of ``get``/``create``.
        parent: Object whose ``request`` coroutine sends the HTTP call
            (a zone, the project, ...).
        base_url: Collection path of the resource, e.g. ``/autoscalers``.
        id: Identifier of the resource within the collection.
        create_method: Coroutine ``(id, config) -> ApiResult`` used by
            ``create``; its result value is the created handle.
        methods: Names of the generic operations the owner exposes.
    """

    def __init__(
        self,
        owner: Any,
        *,
        parent: Any,
        base_url: str,
        id: str,
        create_method: Optional[CreateMethod] = None,
        methods: Iterable[str] = (),
    ):
        unknown = set(methods) - GENERIC_METHODS
        if unknown:
            raise ValueError(f"Unknown service methods: {sorted(unknown)}")

        self.owner = owner
        self.parent = parent
        self.base_url = base_url
        self.id = id
        self.create_method = create_method
        self.methods: FrozenSet[str] = frozenset(methods)

    def expose(self, name: str) -> Any:
        """Return the bound generic operation ``name`` if the owner supports it."""
        if name in self.methods:
            return getattr(self, name)
        raise AttributeError(
            f"{type(self.owner).__name__!r} object has no attribute {name!r}"
        )

    def _dispatch(self, name: str) -> Callable[..., Awaitable[ApiResult]]:
        # Owner overrides win, as they would with a subclass.
        if getattr(type(self.owner), name, None) is not None:
            return getattr(self.owner, name)
        return getattr(self, name)

    @property
    def path(self) -> str:
        return f"{self.base_url}/{self.id}"

    async def request(
        self,
        method: str,
        uri: str = "",
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a request relative to this resource through the parent."""
        return await self.parent.request(
            method, f"{self.path}{uri}", params=params, json=json
        )

    async def create(
        self,
        config: Optional[Dict[str, Any]] = None,
        callback: Optional[Callback] = None,
    ) -> ApiResult:
        """Create the resource through the owner's create delegate.

        The callback receives ``(error, owner, operation, api_response)``.
        """
        config, callback = split_callback(config, callback)
        callback = callback or noop

        if self.create_method is None:
            raise AttributeError(
                f"{type(self.owner).__name__!r} object cannot be created"
            )

        result = await self.create_method(self.id, dict(config or {}))
        if not result.ok:
            callback(result.error, None, None, result.api_response)
            return ApiResult.failure(result.error, result.api_response)

        instance = result.value
        self.owner.metadata = instance.metadata

        callback(None, self.owner, result.operation, result.api_response)
        return ApiResult(
            value=self.owner,
            operation=result.operation,
            api_response=result.api_response,
        )

    async def delete(self, callback: Optional[Callback] = None) -> ApiResult:
        """Delete the resource. The callback receives ``(error, api_response)``."""
        callback = callback or noop

        result = await call_api(self.request("DELETE"))
        callback(result.error, result.api_response)
        return result

    async def exists(self, callback: Optional[Callback] = None) -> ApiResult:
        """Check whether the resource exists.

        A 404 from the API means ``False``; any other error is passed on.
        The callback receives ``(error, exists)``.
        """
        callback = callback or noop

        result = await self._dispatch("get")()
        if result.ok:
            callback(None, True)
            return ApiResult(value=True, api_response=result.api_response)

        if is_not_found(result.error):
            callback(None, False)
            return ApiResult(value=False, api_response=result.api_response)

        callback(result.error, None)
        return ApiResult.failure(result.error, result.api_response)

    async def get(
        self,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[Callback] = None,
    ) -> ApiResult:
        """Fetch the resource, optionally creating it when it is missing.

        With ``options["auto_create"]`` set, a 404 triggers ``create`` with
        the remaining options as its configuration, after which the resource
        is fetched again. The callback receives
        ``(error, owner, api_response)``.
        """
        options, callback = split_callback(options, callback)
        callback = callback or noop

        config = dict(options or {})
        auto_create = bool(config.pop("auto_create", False)) and (
            self.create_method is not None
        )

        result = await self._dispatch("get_metadata")()
        if result.ok:
            callback(None, self.owner, result.api_response)
            return ApiResult(value=self.owner, api_response=result.api_response)

        if auto_create and is_not_found(result.error):
            logger.info(f"{self.path} not found, creating it")
            created = await self._dispatch("create")(config)
            # 409 means someone else created it first.
            if not created.ok and not is_conflict(created.error):
                callback(created.error, None, created.api_response)
                return ApiResult.failure(created.error, created.api_response)
            return await self.get(config, callback)

        callback(result.error, None, result.api_response)
        return ApiResult.failure(result.error, result.api_response)

    async def get_metadata(self, callback: Optional[Callback] = None) -> ApiResult:
        """Read the resource and store the body on the owner.

        The callback receives ``(error, metadata, api_response)``.
        """
        callback = callback or noop

        result = await call_api(self.request("GET"))
        if not result.ok:
            callback(result.error, None, result.api_response)
            return result

        self.owner.metadata = result.api_response
        callback(None, self.owner.metadata, result.api_response)
        return result

    async def set_metadata(
        self,
        metadata: Optional[Dict[str, Any]] = None,
        callback: Optional[Callback] = None,
    ) -> ApiResult:
        """PATCH the resource. The callback receives ``(error, api_response)``."""
        metadata, callback = split_callback(metadata, callback)
        callback = callback or noop

        result = await call_api(self.request("PATCH", json=dict(metadata or {})))
        if result.ok:
            self.owner.metadata = result.api_response

        callback(result.error, result.api_response)
        return result
