from .base import FunctionTool, Tool
from .builtins import CalculatorTool, CurrentTimeTool, EchoTool
from .executor import ToolExecutor
from .registry import ToolRegistry

__all__ = [
    "Tool",
    "FunctionTool",
    "ToolRegistry",
    "ToolExecutor",
    "CalculatorTool",
    "EchoTool",
    "CurrentTimeTool",
]
