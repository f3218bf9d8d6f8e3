from __future__ import annotations

"""Fail-closed authorization gate for tool calls.

``PolicyGate`` is the single authority the loop consults before executing a
tool. It wraps a rule evaluator that is compiled once at host startup and
then queried at ``data.agent.tools.allow`` for every call.

Decision rules
--------------

- The evaluation input is ``{"tool": <name>, **tool_call.input}``. A tool
  input that already carries the reserved ``tool`` key is denied before the
  evaluator is consulted.
- An evaluation error, an undefined result, a non-boolean result and
  ``False`` each deny with a distinct message.
- Only an explicit ``True`` allows.
- Nothing is cached between calls.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from .errors import PolicyCompileError, PolicyDeniedError
from .models import ToolCall

logger = logging.getLogger(__name__)

QUERY_PATH = "data.agent.tools.allow"
RESERVED_TOOL_KEY = "tool"

DEFAULT_POLICY = """
package agent.tools
default allow = true
"""


class _Undefined:
    """Marker for a query that produced no result."""

    _instance: Optional["_Undefined"] = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


class PolicyEvaluator(Protocol):
    """Rule evaluator behind the gate.

    ``prepare`` compiles the policy module (and loads optional data) and must
    raise ``PolicyCompileError`` on failure. ``evaluate`` returns the raw value
    of ``data.agent.tools.allow`` for one input document, or ``UNDEFINED``.
    """

    async def prepare(self, source: str, data: Optional[Dict[str, Any]] = None) -> None: ...

    async def evaluate(self, input: Dict[str, Any]) -> Any: ...


def build_input(tool_call: ToolCall) -> Dict[str, Any]:
    """Build the evaluation input document for a tool call.

    Raises:
        PolicyDeniedError: If the tool input shadows the reserved ``tool`` key.
    """
    if RESERVED_TOOL_KEY in tool_call.input:
        raise PolicyDeniedError(
            tool_call.name, f"policy denied: input must not contain reserved key '{RESERVED_TOOL_KEY}'"
        )
    doc: Dict[str, Any] = {RESERVED_TOOL_KEY: tool_call.name}
    doc.update(tool_call.input)
    return doc


class PolicyGate:
    """Evaluate every tool call against a compiled policy and fail closed."""

    def __init__(self, evaluator: PolicyEvaluator) -> None:
        self._evaluator = evaluator

    @classmethod
    async def create(
        cls,
        source: str,
        data: Optional[Dict[str, Any]] = None,
        *,
        evaluator: PolicyEvaluator,
    ) -> "PolicyGate":
        """
        Compile the policy once and return a ready gate.

        Args:
            source: Policy module text.
            data: Optional data document made available to the rules.
            evaluator: The evaluator that compiles and runs the policy.

        Raises:
            PolicyCompileError: If the evaluator rejects the policy.
        """
        try:
            await evaluator.prepare(source, data)
        except PolicyCompileError:
            raise
        except Exception as e:
            raise PolicyCompileError(f"failed to compile policy: {e}") from e
        logger.info("Policy compiled; query=%s", QUERY_PATH)
        return cls(evaluator)

    async def allow(self, tool_call: ToolCall) -> None:
        """
        Return normally only when the policy explicitly allows the call.

        Raises:
            PolicyDeniedError: For every outcome other than an explicit ``True``.
        """
        doc = build_input(tool_call)
        try:
            value = await self._evaluator.evaluate(doc)
        except Exception as e:
            logger.warning("Policy evaluation failed for tool %s: %s", tool_call.name, e)
            raise PolicyDeniedError(tool_call.name, f"policy evaluation failed: {e}") from e

        if value is UNDEFINED:
            raise PolicyDeniedError(tool_call.name, "policy denied: no matching allow rule")
        if not isinstance(value, bool):
            raise PolicyDeniedError(tool_call.name, "policy denied: invalid result type")
        if not value:
            raise PolicyDeniedError(tool_call.name, "policy denied: allow rule returned false")
        logger.debug("Policy allowed tool %s", tool_call.name)
