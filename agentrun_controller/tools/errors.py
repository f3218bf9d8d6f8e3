"""Error types raised by the built-in tools.

Tool errors are not fatal to a run: the loop records the message on the
``ToolCallRecord`` and shows it to the model.
"""

from __future__ import annotations

from ..errors import AgentRunControllerError


class ToolInputError(AgentRunControllerError, ValueError):
    """Raised when a tool is called with missing or malformed input."""


class ToolExecutionError(AgentRunControllerError):
    """Raised when the cluster call behind a tool fails."""
