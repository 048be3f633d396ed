"""Core components of the micro-gce client."""

from micro_gce.core.config import ComputeConfig, ConnectionConfig, load_config
from micro_gce.core.connection import Connection
from micro_gce.core.errors import ApiError, ComputeError, OperationError
from micro_gce.core.result import ApiResult
from micro_gce.core.service_object import ServiceObject

__all__ = [
    "ComputeConfig",
    "ConnectionConfig",
    "load_config",
    "Connection",
    "ApiError",
    "ComputeError",
    "OperationError",
    "ApiResult",
    "ServiceObject",
]
