"""Error types specific to the Kubernetes API layer.

Purpose:
- Provide typed exceptions thrown by ``KubeClient`` and consumers of the
  Kubernetes REST API.
- Expose HTTP-oriented context (status code, ``Status`` body) for diagnosis.

Usage:
- Catch ``NotFoundError`` when a lookup returns 404.
- Catch ``AlreadyExistsError`` when a create collides with an existing object.
- Catch ``KubeApiError`` for every other failure.
"""

from __future__ import annotations

from typing import Any, Optional

from ..errors import AgentRunControllerError


class KubeApiError(AgentRunControllerError):
    """Base error for Kubernetes API failures.

    Args:
        message: Human-readable error description.
        status_code: Optional HTTP status code associated with the failure.
        details: Optional structured payload from the server (e.g., the ``Status`` body).
    """
    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class NotFoundError(KubeApiError):
    """Raised when the requested object does not exist (HTTP 404)."""


class AlreadyExistsError(KubeApiError):
    """Raised when a create targets a name that is already taken (HTTP 409, reason AlreadyExists)."""
