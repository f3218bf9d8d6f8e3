"""Root exception type shared by every layer of the project."""

from __future__ import annotations


class AgentRunControllerError(Exception):
    """Base class for all errors raised by ``agentrun_controller``."""
