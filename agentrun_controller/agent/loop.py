from __future__ import annotations

"""LangGraph agent execution loop.

``AgentLoop`` drives a bounded plan/act/reflect conversation between a
``Provider`` and the registered tools, with every tool call authorized by a
``PolicyGate`` first.

Execution model
---------------

- The loop runs a LangGraph state machine over a mutable ``_LoopState``.
- ``plan`` starts an iteration: one provider call over the full
  conversation. A turn without tool calls is recorded as the current final
  response and the model is asked to continue; the next iteration starts.
- ``act`` runs the requested tool calls strictly in order. A denied call or
  an unknown tool fails the run before anything else executes. A tool error
  is recorded on its ``ToolCallRecord`` and the batch continues.
- ``reflect`` sends all tool results back as one user message. A reflection
  without tool calls that stops on ``end_turn`` succeeds the run.
- When the iteration bound is exhausted the run ends with
  ``max_iterations``.

Deadline
--------

``run`` accepts an absolute deadline in event loop time. Every provider
call and every tool call, including its policy check, is bounded by it; a
call still pending at the deadline is cancelled and the run fails with
``DeadlineExceededError``.
"""

import asyncio
import logging
from typing import Awaitable, List, NotRequired, Optional, Required, TypedDict, TypeVar

from langgraph.graph import END, StateGraph

from .errors import DeadlineExceededError, PolicyDeniedError, ToolNotFoundError
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
from .policy import PolicyGate
from .provider import Provider
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

GOAL_PROMPT = "Goal: {goal}\n\nPlease analyze this goal and take the necessary actions to achieve it."
CONTINUE_PROMPT = (
    "Please continue analyzing the goal. If you need more information, use the available tools. "
    "If you're confident the goal is achieved, provide your final answer."
)
TOOL_RESULT_LINE = "Tool call {id} result: {output}\n"
TOOL_FAILED_LINE = "Tool call {id} failed: {error}\n"


class _LoopState(TypedDict):
    """Mutable LangGraph state for a single loop run.

    Required keys:

    - ``messages``: the ordered conversation sent to the provider.
    - ``result``: the ``LoopResult`` being built.
    - ``iteration``: the current iteration (1-based once started).
    - ``pending``: tool calls requested by the last ``plan`` turn.

    Optional keys:

    - ``_finished``: set by any node that decided the run outcome.
    """

    messages: Required[List[Message]]
    result: Required[LoopResult]
    iteration: Required[int]
    pending: Required[List[ToolCall]]
    _finished: NotRequired[bool]


class AgentLoop:
    """Run one goal to completion against a provider, a tool registry and a policy gate."""

    def __init__(
        self,
        *,
        provider: Provider,
        tools: ToolRegistry,
        gate: PolicyGate,
        goal: str,
        system_prompt: str = "",
        max_iterations: int = 3,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self._provider = provider
        self._tools = tools
        self._gate = gate
        self._goal = goal
        self._system_prompt = system_prompt
        self._max_iterations = max_iterations
        self._deadline: Optional[float] = None
        self._graph = self._build_graph()

    def _build_graph(self):
        """Build and compile the LangGraph state machine."""
        g: StateGraph = StateGraph(_LoopState)
        g.add_node("plan", self._node_plan)
        g.add_node("act", self._node_act)
        g.add_node("reflect", self._node_reflect)
        g.add_node("finish", self._node_finish)

        g.set_entry_point("plan")
        g.add_conditional_edges(
            "plan",
            self._route_after_plan,
            {"finish": "finish", "act": "act", "plan": "plan"},
        )
        g.add_conditional_edges("act", self._route_after_act, {"finish": "finish", "reflect": "reflect"})
        g.add_conditional_edges("reflect", self._route_after_reflect, {"finish": "finish", "plan": "plan"})
        g.add_edge("finish", END)
        return g.compile()

    def initial_messages(self) -> List[Message]:
        messages: List[Message] = []
        if self._system_prompt:
            messages.append(Message(role=MessageRole.system, content=self._system_prompt))
        messages.append(Message(role=MessageRole.user, content=GOAL_PROMPT.format(goal=self._goal)))
        return messages

    async def run(self, deadline: Optional[float] = None) -> LoopResult:
        """
        Execute the loop and return its result.

        Args:
            deadline: Absolute deadline in ``asyncio`` event loop time
                (``loop.time()``). ``None`` means unbounded.

        Returns:
            The finished ``LoopResult``. Failures are reported through
            ``status``/``agent_error``/``failure`` rather than raised.
        """
        self._deadline = deadline
        state: _LoopState = {
            "messages": self.initial_messages(),
            "result": LoopResult(),
            "iteration": 0,
            "pending": [],
        }
        # plan -> act -> reflect per iteration, plus the finish node.
        config = {"recursion_limit": 3 * self._max_iterations + 5}
        final = await self._graph.ainvoke(state, config=config)
        result: LoopResult = final["result"]
        logger.info(
            "Agent loop finished: status=%s iterations=%d tool_calls=%d tokens_in=%d tokens_out=%d",
            result.status.value if result.status else None,
            result.iterations,
            len(result.tool_calls),
            result.tokens_in,
            result.tokens_out,
        )
        return result

    async def _bounded(self, aw: Awaitable[T], what: str) -> T:
        """Await ``aw`` within the run deadline."""
        if self._deadline is None:
            return await aw
        cm = asyncio.timeout_at(self._deadline)
        try:
            async with cm:
                return await aw
        except TimeoutError as e:
            if cm.expired():
                raise DeadlineExceededError(f"{what} did not complete before the run deadline") from e
            raise

    async def _call_provider(self, messages: List[Message]) -> ProviderResponse:
        return await self._bounded(self._provider.call(list(messages)), "provider call")

    @staticmethod
    def _fail(state: _LoopState, error: str, failure: BaseException) -> _LoopState:
        logger.warning("Agent run failed: %s", error)
        state["result"].finish(LoopStatus.failed, error=error, failure=failure)
        state["_finished"] = True
        return state

    async def _node_plan(self, state: _LoopState) -> _LoopState:
        """Start the next iteration with one provider call."""
        result = state["result"]
        if state["iteration"] >= self._max_iterations:
            state["_finished"] = True
            return state

        state["iteration"] += 1
        result.iterations = state["iteration"]
        logger.debug("Iteration %d/%d: plan", state["iteration"], self._max_iterations)

        try:
            response = await self._call_provider(state["messages"])
        except DeadlineExceededError as e:
            return self._fail(state, f"Deadline exceeded: {e}", e)
        except Exception as e:
            return self._fail(state, f"LLM call failed: {e}", e)

        result.add_usage(response)
        state["messages"].append(Message(role=MessageRole.assistant, content=response.content))

        if not response.tool_calls:
            result.response = response.content
            state["messages"].append(Message(role=MessageRole.user, content=CONTINUE_PROMPT))
            state["pending"] = []
            return state

        state["pending"] = list(response.tool_calls)
        return state

    async def _node_act(self, state: _LoopState) -> _LoopState:
        """Authorize and execute the pending tool calls in order."""
        result = state["result"]
        lines: List[str] = []
        for call in state["pending"]:
            try:
                await self._bounded(self._gate.allow(call), f"policy check for {call.name}")
            except DeadlineExceededError as e:
                return self._fail(state, f"Deadline exceeded: {e}", e)
            except PolicyDeniedError as e:
                return self._fail(state, f"Policy violation for tool {call.name}: {e}", e)

            try:
                tool = self._tools.get(call.name)
            except ToolNotFoundError as e:
                return self._fail(state, f"Tool not found: {call.name}", e)

            record = ToolCallRecord(id=call.id, name=call.name, input=dict(call.input))
            try:
                output = await self._bounded(tool.execute(dict(call.input)), f"tool {call.name}")
            except DeadlineExceededError as e:
                return self._fail(state, f"Deadline exceeded: {e}", e)
            except Exception as e:
                logger.info("Tool %s (%s) failed: %s", call.name, call.id, e)
                record.error = str(e)
                lines.append(TOOL_FAILED_LINE.format(id=call.id, error=record.error))
            else:
                record.output = output
                lines.append(TOOL_RESULT_LINE.format(id=call.id, output=output))
            result.tool_calls.append(record)

        state["pending"] = []
        state["messages"].append(Message(role=MessageRole.user, content="".join(lines)))
        return state

    async def _node_reflect(self, state: _LoopState) -> _LoopState:
        """Let the model reflect on the tool results."""
        result = state["result"]
        try:
            response = await self._call_provider(state["messages"])
        except DeadlineExceededError as e:
            return self._fail(state, f"Deadline exceeded: {e}", e)
        except Exception as e:
            return self._fail(state, f"Reflection call failed: {e}", e)

        result.add_usage(response)
        state["messages"].append(Message(role=MessageRole.assistant, content=response.content))
        result.response = response.content

        if not response.tool_calls and response.stop_reason == StopReason.end_turn.value:
            result.finish(LoopStatus.succeeded)
            state["_finished"] = True
        return state

    async def _node_finish(self, state: _LoopState) -> _LoopState:
        """Record ``max_iterations`` when no other node decided the outcome."""
        result = state["result"]
        if result.status is None:
            result.finish(LoopStatus.max_iterations)
        return state

    def _route_after_plan(self, state: _LoopState) -> str:
        if state.get("_finished"):
            return "finish"
        if state["pending"]:
            return "act"
        return "plan"

    def _route_after_act(self, state: _LoopState) -> str:
        return "finish" if state.get("_finished") else "reflect"

    def _route_after_reflect(self, state: _LoopState) -> str:
        return "finish" if state.get("_finished") else "plan"
