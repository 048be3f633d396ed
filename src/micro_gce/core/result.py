"""Result type returned by every asynchronous resource operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

Callback = Callable[..., Any]


def noop(*args: Any) -> None:
    """Callback used when the caller does not supply one."""


def split_callback(options: Any, callback: Optional[Callback]) -> Tuple[Any, Optional[Callback]]:
    """Allow the callback in place of an omitted options argument."""
    if callable(options):
        return None, options
    return options, callback


@dataclass
class ApiResult:
    """Outcome of a single API operation.

    A failed result carries ``error`` and whatever raw response was
    received; a successful one carries the primary ``value`` (a handle,
    a metadata dict, a list of handles or a boolean) and the raw
    ``api_response``.
    """

    error: Optional[BaseException] = None
    value: Any = None
    operation: Any = None
    next_query: Optional[Dict[str, Any]] = None
    api_response: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return ``value`` or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def failure(cls, error: BaseException, api_response: Any = None) -> "ApiResult":
        return cls(error=error, api_response=api_response)
