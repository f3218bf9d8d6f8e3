"""Error types raised by the agent execution layer.

Purpose:
- Distinguish policy failures (compile vs. denial) from registry lookups and
  deadline expiry so the loop and the host can map each to a run outcome.

Usage:
- ``PolicyCompileError`` aborts the host before the loop starts.
- ``PolicyDeniedError`` and ``ToolNotFoundError`` fail the run.
- ``DeadlineExceededError`` fails the run when a call outlives the deadline.
"""

from __future__ import annotations

from typing import Any, Optional

from ..errors import AgentRunControllerError


class AgentError(AgentRunControllerError):
    """Base error for the agent execution layer."""


class PolicyCompileError(AgentError):
    """Raised when the policy module cannot be compiled or uploaded.

    Args:
        message: Human-readable error description.
        details: Optional structured payload returned by the evaluator.
    """

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.details = details


class PolicyDeniedError(AgentError):
    """Raised when the policy does not explicitly allow a tool call.

    Args:
        tool_name: Name of the tool that was denied.
        reason: Why the call was denied.
    """

    def __init__(self, tool_name: str, reason: str) -> None:
        super().__init__(reason)
        self.tool_name = tool_name
        self.reason = reason


class ToolNotFoundError(AgentError, KeyError):
    """Raised when no tool is registered under the requested name."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name)
        self.tool_name = tool_name

    def __str__(self) -> str:
        return f"tool not registered: {self.tool_name}"


class DuplicateToolError(AgentError, ValueError):
    """Raised when a second tool is registered under an existing name."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"tool already registered: {tool_name}")
        self.tool_name = tool_name


class DeadlineExceededError(AgentError):
    """Raised when a provider or tool call does not complete before the run deadline."""


class PolicyEvaluationError(AgentError):
    """Raised by an evaluator when a query cannot be answered.

    Args:
        message: Human-readable error description.
        status_code: Optional HTTP status code returned by the evaluator.
        details: Optional structured payload returned by the evaluator.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details
