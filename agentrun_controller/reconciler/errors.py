"""Error types raised by the reconciler."""

from __future__ import annotations

from ..errors import AgentRunControllerError


class ConfigNotFoundError(AgentRunControllerError):
    """Raised when an ``AgentRun`` references an ``AgentConfig`` that does not exist."""

    def __init__(self, namespace: str, name: str) -> None:
        super().__init__(f'AgentConfig "{name}" not found in namespace "{namespace}"')
        self.namespace = namespace
        self.name = name
