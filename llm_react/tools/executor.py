"""
Tool executor – runs a named tool and turns every outcome into an observation.
"""

import json
import logging
import traceback
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Optional

from ..errors import ToolExecutionError
from .base import Tool
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutor:
    """
    Executes tools with error handling and an optional timeout.

    ``observe`` never raises for tool-side problems: unknown tools and tool
    failures come back as observation text the model can react to.

    A timeout decides the observation, not how long the tool runs: a tool
    that overruns is reported as timed out, but ``execute`` still returns
    only once it has finished, so tools never overlap.

    Example::

        executor = ToolExecutor(registry)
        observation = executor.observe("Calculator", "2 + 2")
    """

    def __init__(self, registry: ToolRegistry, default_timeout: Optional[float] = None):
        self.registry = registry
        self.default_timeout = default_timeout

    def observe(self, name: str, tool_input: str, timeout: Optional[float] = None) -> str:
        tool = self.registry.get(name)
        if tool is None:
            logger.warning(f"Unknown tool: {name}")
            return self.unknown_tool_message(name)

        try:
            logger.debug(f"Executing tool '{name}' with input: {tool_input}")
            observation = self.execute(tool, tool_input, timeout)
            logger.debug(f"Tool observation: {observation}")
            return observation
        except ToolExecutionError as e:
            logger.error(f"Error executing tool {name}: {e}")
            return f"Error executing tool: {e}"

    def execute(self, tool: Tool, tool_input: str, timeout: Optional[float] = None) -> str:
        """Run ``tool`` and format its result; any failure becomes ToolExecutionError."""
        timeout = timeout or self.default_timeout
        try:
            if timeout is None:
                raw = tool.execute(tool_input)
            else:
                # Leaving the block joins the worker, so a tool that overran its
                # timeout still finishes before the next one can start.
                with ThreadPoolExecutor(max_workers=1) as pool:
                    raw = pool.submit(tool.execute, tool_input).result(timeout=timeout)
        except ToolExecutionError:
            raise
        except FuturesTimeoutError as e:
            raise ToolExecutionError(tool.name, f"Tool execution timed out after {timeout}s") from e
        except Exception as e:
            logger.debug(traceback.format_exc())
            raise ToolExecutionError(tool.name, str(e) or type(e).__name__) from e
        return self._format(raw)

    def unknown_tool_message(self, name: str) -> str:
        return f"Error: Unknown tool '{name}'. Available tools: {', '.join(self.registry.names())}"

    @staticmethod
    def _format(result: Any) -> str:
        if result is None:
            return "null"
        if isinstance(result, str):
            return result
        if isinstance(result, (dict, list)):
            try:
                return json.dumps(result, indent=2, default=str)
            except (TypeError, ValueError):
                return str(result)
        return str(result)
