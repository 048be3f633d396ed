"""micro-gce - Async client for Compute Engine autoscalers.

This package provides:
- Resource handles: Autoscaler, Zone and Operation objects bound to a project
- Operations as results: every call returns an ApiResult and optionally
  fires a callback
- A shared request layer with retries, bearer token auth and error mapping
- Configuration from YAML files or MICRO_GCE_* environment variables
"""

__version__ = "0.1.0"

# Core components
from micro_gce.core.config import (
    ComputeConfig,
    ConnectionConfig,
    load_config,
)
from micro_gce.core.connection import Connection
from micro_gce.core.errors import ApiError, ComputeError, OperationError
from micro_gce.core.result import ApiResult
from micro_gce.core.service_object import ServiceObject

# Resource handles
from micro_gce.compute import (
    Autoscaler,
    Compute,
    Operation,
    Zone,
)

__all__ = [
    # Version
    "__version__",

    # Config
    "ComputeConfig",
    "ConnectionConfig",
    "load_config",

    # Request layer
    "Connection",
    "ServiceObject",
    "ApiResult",

    # Errors
    "ApiError",
    "ComputeError",
    "OperationError",

    # Resources
    "Autoscaler",
    "Compute",
    "Operation",
    "Zone",
]
