"""Error types raised by LLM provider clients."""

from __future__ import annotations

from typing import Any, Optional

from ..errors import AgentRunControllerError


class ProviderError(AgentRunControllerError):
    """Base error for LLM provider failures.

    Args:
        message: Human-readable error description.
        status_code: Optional HTTP status code returned by the vendor API.
        details: Optional response body returned by the vendor API.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details
