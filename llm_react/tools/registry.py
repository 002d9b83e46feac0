"""
Tool registry – maps tool names to Tool instances.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from .base import FunctionTool, Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Registry for the tools an agent may call.

    Names are stored stripped and lowercased, so lookup is case-insensitive. Registering a
    name twice replaces the earlier tool. Iteration follows registration order.

    Example::

        registry = ToolRegistry()
        registry.register(CalculatorTool())
        registry.register_function(
            name="Weather",
            description="Get current weather for a city. Input: the city name.",
            function=lambda city: f"Sunny in {city}",
        )
        registry.get("calculator")
    """

    def __init__(self, tools: Optional[List[Tool]] = None):
        self._tools: Dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    # ── Registration ─────────────────────────────────────────────

    def register(self, tool: Tool) -> None:
        key = _key(tool.name)
        if key in self._tools:
            logger.warning(f"Tool '{tool.name}' already registered, overwriting")
        self._tools[key] = tool

    def register_function(
        self,
        name: str,
        description: str,
        function: Callable[[str], Any],
    ) -> Tool:
        """Register a plain one-argument function as a tool."""
        tool = FunctionTool(name=name, description=description, function=function)
        self.register(tool)
        return tool

    def unregister(self, name: str) -> bool:
        return self._tools.pop(_key(name), None) is not None

    # ── Lookup ───────────────────────────────────────────────────

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(_key(name))

    def get_tools(self) -> List[Tool]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        """Registered tool names as the tools spell them, in registration order."""
        return [tool.name for tool in self._tools.values()]

    def has_tool(self, name: str) -> bool:
        return self.get(name) is not None

    def describe(self) -> str:
        """One ``- name: description`` line per tool, for the system prompt."""
        return "\n".join(f"- {tool.name}: {tool.description}" for tool in self._tools.values())

    def clear(self) -> None:
        self._tools.clear()

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return self.has_tool(name)

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools.values()))


def _key(name: str) -> str:
    return name.strip().lower()
