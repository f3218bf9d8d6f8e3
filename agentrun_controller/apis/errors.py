from __future__ import annotations

from ..errors import AgentRunControllerError


class SpecValidationError(AgentRunControllerError):
    """Raised when a declared ``AgentRun`` or ``AgentConfig`` is invalid.

    Args:
        kind: Object kind (``AgentRun`` or ``AgentConfig``).
        field: Dotted path of the offending field.
        message: Human-readable reason.
    """

    def __init__(self, kind: str, field: str, message: str) -> None:
        super().__init__(f"{kind} {field}: {message}")
        self.kind = kind
        self.field = field
