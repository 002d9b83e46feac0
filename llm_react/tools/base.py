"""
Tool capability: a named function the agent can call by emitting an Action line.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable


class Tool(ABC):
    """
    Base class for agent tools.

    ``name`` is what the model writes after ``Action:`` (matched
    case-insensitively) and ``description`` is copied verbatim into the
    system prompt, so write it for the model, not for humans.
    """

    name: str = ""
    description: str = ""

    @abstractmethod
    def execute(self, tool_input: str) -> str:
        """Run the tool. May raise; the agent turns failures into observations."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionTool(Tool):
    """Adapts a plain ``str -> Any`` callable to the Tool interface."""

    def __init__(self, name: str, description: str, function: Callable[[str], Any]):
        if not name:
            raise ValueError("tool name is required")
        self.name = name
        self.description = description
        self.function = function

    def execute(self, tool_input: str) -> Any:
        return self.function(tool_input)
