from __future__ import annotations

"""Conversation and result models of the agent execution loop.

- ``Message`` / ``ToolCall`` / ``ProviderResponse`` describe one LLM round trip.
- ``ToolCallRecord`` is the append-only trace of an executed tool call.
- ``LoopResult`` is the outcome of one loop run. It serializes with the
  camelCase keys written to ``result.json`` (``toolCalls``, ``tokensIn``,
  ``tokensOut``, ``agentError``).
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field, PrivateAttr

from ..apis.base import BaseSchema


class MessageRole(str, Enum):
    system = "system"
    user = "user"
    assistant = "assistant"


class StopReason(str, Enum):
    end_turn = "end_turn"
    tool_use = "tool_use"
    max_tokens = "max_tokens"


class LoopStatus(str, Enum):
    succeeded = "succeeded"
    failed = "failed"
    max_iterations = "max_iterations"


class Message(BaseSchema):
    role: MessageRole
    content: str = ""


class ToolCall(BaseSchema):
    """A tool invocation requested by the model."""

    id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)


class ToolCallRecord(BaseSchema):
    """A ``ToolCall`` after execution: ``output`` on success, ``error`` on failure."""

    id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)
    output: str = ""
    error: Optional[str] = None


class ProviderResponse(BaseSchema):
    """
    One model turn.

    ``stop_reason`` is kept as the raw vendor string; compare it against
    ``StopReason`` members.
    """

    content: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)
    stop_reason: str = ""
    tokens_in: int = 0
    tokens_out: int = 0


class LoopResult(BaseSchema):
    """
    Outcome of one ``AgentLoop.run``.

    ``status`` stays ``None`` until ``finish`` records it; a second ``finish``
    raises. The exception that failed the run (if any) is kept on
    ``failure`` and never serialized.
    """

    status: Optional[LoopStatus] = None
    iterations: int = 0
    tool_calls: List[ToolCallRecord] = Field(default_factory=list, alias="toolCalls")
    response: str = ""
    tokens_in: int = Field(default=0, alias="tokensIn")
    tokens_out: int = Field(default=0, alias="tokensOut")
    agent_error: Optional[str] = Field(default=None, alias="agentError")

    _failure: Optional[BaseException] = PrivateAttr(default=None)

    @property
    def failure(self) -> Optional[BaseException]:
        return self._failure

    @property
    def succeeded(self) -> bool:
        return self.status == LoopStatus.succeeded

    def add_usage(self, response: ProviderResponse) -> None:
        self.tokens_in += response.tokens_in
        self.tokens_out += response.tokens_out

    def finish(
        self,
        status: LoopStatus,
        *,
        error: Optional[str] = None,
        failure: Optional[BaseException] = None,
    ) -> None:
        """Record the terminal status exactly once.

        Raises:
            RuntimeError: If the result was already finished.
        """
        if self.status is not None:
            raise RuntimeError(f"loop result already finished with status {self.status.value}")
        self.status = status
        if error is not None:
            self.agent_error = error
        self._failure = failure
