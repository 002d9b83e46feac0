"""
Built-in tools: Calculator, Echo and CurrentTime.
"""

import ast
import json
import operator
from datetime import datetime, tzinfo
from typing import Optional, Union

from .base import Tool

Number = Union[int, float]

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def _unwrap_json(tool_input: str, *keys: str) -> str:
    """Accept ``{"expression": "..."}``-style JSON input as well as bare text."""
    text = tool_input.strip()
    if not text.startswith("{"):
        return text
    try:
        data = json.loads(text)
    except ValueError:
        return text
    if isinstance(data, dict):
        for key in keys:
            if isinstance(data.get(key), str):
                return data[key].strip()
    return text


class CalculatorTool(Tool):
    """Evaluates arithmetic with +, -, *, / and parentheses. Never calls eval()."""

    name = "Calculator"
    description = (
        "Useful for performing mathematical calculations. "
        "Input should be a plain arithmetic expression, e.g. 2 + 2. "
        "Supports +, -, *, / operators and parentheses."
    )

    def execute(self, tool_input: str) -> str:
        expression = _unwrap_json(tool_input or "", "expression", "input")
        if not expression:
            return "Error: No expression provided"
        try:
            result = self.evaluate(expression)
        except (SyntaxError, ValueError, ZeroDivisionError) as e:
            return f"Error evaluating expression: {e}"
        return self.format_number(result)

    def evaluate(self, expression: str) -> Number:
        tree = ast.parse(expression, mode="eval")
        return self._eval(tree.body)

    def _eval(self, node: ast.AST) -> Number:
        if isinstance(node, ast.Constant) and type(node.value) in (int, float):
            return node.value
        if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
            return _BINARY_OPS[type(node.op)](self._eval(node.left), self._eval(node.right))
        if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
            return _UNARY_OPS[type(node.op)](self._eval(node.operand))
        raise ValueError(f"Unsupported expression: {ast.dump(node)}")

    @staticmethod
    def format_number(value: Number) -> str:
        if float(value).is_integer():
            return str(int(value))
        return repr(float(value))


class EchoTool(Tool):
    """Returns its input unchanged. Handy for testing prompts."""

    name = "Echo"
    description = "Returns exactly what you input."

    def execute(self, tool_input: str) -> str:
        return _unwrap_json(tool_input or "", "text", "input")


class CurrentTimeTool(Tool):
    name = "CurrentTime"
    description = "Returns the current date and time. No input required."

    def __init__(self, tz: Optional[tzinfo] = None, fmt: str = "%Y-%m-%d %H:%M:%S %Z"):
        self.tz = tz
        self.fmt = fmt

    def execute(self, tool_input: str = "") -> str:
        now = datetime.now(self.tz) if self.tz else datetime.now().astimezone()
        return now.strftime(self.fmt).strip()
