"""
The ReAct text protocol: the system prompt that teaches it and the parser that reads it.

The two halves must change together. The prompt tells the model to write
one marker per line (``Thought:``, ``Action:``, ``Action Input:``,
``Final Answer:``); the parser looks for exactly those markers,
case-insensitively, and has no fallback grammar.
"""

import re
from typing import Optional

from .models import AgentStep, ParsedOutput
from .tools.registry import ToolRegistry

DEFAULT_SYSTEM_PROMPT = """You are a helpful AI assistant that can use tools to answer questions.

You have access to the following tools:
{tool_descriptions}

Use the following format:

Question: the input question you must answer
Thought: you should always think about what to do
Action: the action to take, should be one of [{tool_names}]
Action Input: the input to the action
Observation: the result of the action
... (this Thought/Action/Action Input/Observation can repeat N times)
Thought: I now know the final answer
Final Answer: the final answer to the original input question

Begin!
"""

NO_ACTION_OBSERVATION = "No valid action found. Please use the format specified."
MAX_ITERATIONS_ANSWER = "Maximum iterations reached without finding a final answer."

# The remainder of the marker's line; surrounding blanks are trimmed.
_FINAL_ANSWER = re.compile(r"Final Answer:\s*(.+?)[ \t]*$", re.IGNORECASE | re.MULTILINE)
_FINAL_ANSWER_MULTILINE = re.compile(r"Final Answer:\s*(.+)", re.IGNORECASE | re.DOTALL)
_THOUGHT = re.compile(r"Thought:[ \t]*(.+?)[ \t]*$", re.IGNORECASE | re.MULTILINE)
_ACTION = re.compile(r"Action:[ \t]*(.+?)[ \t]*$", re.IGNORECASE | re.MULTILINE)
_ACTION_INPUT = re.compile(r"Action Input:[ \t]*(.+?)[ \t]*$", re.IGNORECASE | re.MULTILINE)


def build_system_prompt(registry: ToolRegistry, template: Optional[str] = None) -> str:
    """Fill ``{tool_descriptions}`` and ``{tool_names}`` from the registry.

    Plain substitution rather than ``str.format`` so braces in tool
    descriptions (JSON examples, say) survive untouched.
    """
    template = DEFAULT_SYSTEM_PROMPT if template is None else template
    return template.replace("{tool_descriptions}", registry.describe()).replace(
        "{tool_names}", ", ".join(registry.names())
    )


def parse_output(text: str, multiline_final_answer: bool = False) -> ParsedOutput:
    """Read one model reply.

    A ``Final Answer:`` anywhere wins and nothing else is extracted.
    Otherwise Thought, Action and Action Input are each taken from their
    first occurrence, independently of one another.
    """
    text = text or ""
    final_pattern = _FINAL_ANSWER_MULTILINE if multiline_final_answer else _FINAL_ANSWER
    match = final_pattern.search(text)
    if match:
        return ParsedOutput(final_answer=match.group(1).strip())

    action = _first(_ACTION, text)
    if action:
        action = action.strip("`'\"").strip()

    return ParsedOutput(
        thought=_first(_THOUGHT, text),
        action=action or None,
        action_input=_first(_ACTION_INPUT, text),
    )


def format_step(step: AgentStep) -> str:
    """Scratchpad block for a completed step, in the same marker format."""
    return (
        f"Thought: {step.thought or ''}\n"
        f"Action: {step.action}\n"
        f"Action Input: {step.action_input or ''}\n"
        f"Observation: {step.observation}\n"
    )


def format_missing_action(output: str) -> str:
    return f"{output.rstrip()}\nObservation: {NO_ACTION_OBSERVATION}\n"


def _first(pattern: "re.Pattern[str]", text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(1).strip() if match else None
