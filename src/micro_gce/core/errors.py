"""Exceptions raised or delivered by the Compute Engine client."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx


class ComputeError(Exception):
    """Base class for all client errors."""


class ApiError(ComputeError):
    """The API answered with an HTTP error status.

    Attributes:
        code: HTTP status code.
        message: Error message reported by the API.
        errors: Detailed error entries from the API error block.
        response: Parsed response body, if any.
    """

    def __init__(
        self,
        code: int,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        response: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.errors = errors or []
        self.response = response

    @property
    def not_found(self) -> bool:
        return self.code == 404

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """Build an error from a failed HTTP response.

        Compute Engine wraps failures as ``{"error": {"code", "message",
        "errors"}}``. Bodies that are not JSON fall back to the raw text.
        """
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            return cls(
                code=response.status_code,
                message=error.get("message") or response.reason_phrase,
                errors=error.get("errors"),
                response=body,
            )

        return cls(
            code=response.status_code,
            message=response.text or response.reason_phrase,
            response=body if isinstance(body, dict) else None,
        )

    def __repr__(self) -> str:
        return f"ApiError(code={self.code!r}, message={self.message!r})"


class OperationError(ComputeError):
    """A server-side operation finished with errors or did not finish in time."""

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.metadata = metadata

    @classmethod
    def from_metadata(cls, metadata: Dict[str, Any]) -> "OperationError":
        errors = (metadata.get("error") or {}).get("errors") or []
        if errors:
            message = errors[0].get("message") or errors[0].get("code", "")
        else:
            message = f"Operation {metadata.get('name')} failed"
        return cls(message, errors=errors, metadata=metadata)
