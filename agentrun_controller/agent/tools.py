from __future__ import annotations

"""Tool protocol and registry.

A tool is one named, side-effecting operation the model may request. The
loop resolves ``ToolCall.name`` through a ``ToolRegistry`` after the
``PolicyGate`` has allowed the call.
"""

from typing import Any, Dict, List, Protocol

from .errors import DuplicateToolError, ToolNotFoundError


class Tool(Protocol):
    """Protocol for tool implementations."""

    name: str

    async def execute(self, args: Dict[str, Any]) -> str: ...


class ToolRegistry:
    """
    In-memory mapping of tool names to implementations.

    Notes:
        - ``register`` refuses a second tool under an existing name.
        - ``get`` raises ``ToolNotFoundError`` if the tool is missing.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """
        Register a tool implementation.

        Args:
            tool: The tool instance to register. It must expose a ``name`` attribute.

        Raises:
            DuplicateToolError: If a tool with the same name is already registered.
        """
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        """
        Retrieve a registered tool by name.

        Raises:
            ToolNotFoundError: If no tool is registered with the given name.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def names(self) -> List[str]:
        return sorted(self._tools)

    def __len__(self) -> int:
        return len(self._tools)
