"""Agent execution layer: the plan/act/reflect loop and its policy gate.

- ``AgentLoop``: bounded LLM/tool conversation producing a ``LoopResult``.
- ``PolicyGate``: fail-closed authorization of every tool call.
- ``ToolRegistry`` / ``Tool`` / ``Provider``: the loop's collaborators.
- ``save_result`` / ``load_result``: the ``result.json`` artifact.
"""

from .errors import (
    AgentError,
    DeadlineExceededError,
    DuplicateToolError,
    PolicyCompileError,
    PolicyDeniedError,
    PolicyEvaluationError,
    ToolNotFoundError,
)
from .loop import AgentLoop
from .models import (
    LoopResult,
    LoopStatus,
    Message,
    MessageRole,
    ProviderResponse,
    StopReason,
    ToolCall,
    ToolCallRecord,
)
from .policy import DEFAULT_POLICY, UNDEFINED, PolicyEvaluator, PolicyGate
from .provider import Provider
from .result import ResultArtifact, load_result, save_result
from .tools import Tool, ToolRegistry

__all__ = [
    "AgentError",
    "AgentLoop",
    "DEFAULT_POLICY",
    "DeadlineExceededError",
    "DuplicateToolError",
    "LoopResult",
    "LoopStatus",
    "Message",
    "MessageRole",
    "PolicyCompileError",
    "PolicyDeniedError",
    "PolicyEvaluationError",
    "PolicyEvaluator",
    "PolicyGate",
    "Provider",
    "ProviderResponse",
    "ResultArtifact",
    "StopReason",
    "Tool",
    "ToolCall",
    "ToolCallRecord",
    "ToolNotFoundError",
    "ToolRegistry",
    "UNDEFINED",
    "load_result",
    "save_result",
]
