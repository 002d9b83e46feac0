"""
Data models for the ReAct agent.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .llm.base import TokenUsage


@dataclass(frozen=True)
class ParsedOutput:
    """What the parser found in one model reply. Every field is optional."""

    final_answer: Optional[str] = None
    thought: Optional[str] = None
    action: Optional[str] = None
    action_input: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.final_answer is not None

    @property
    def has_action(self) -> bool:
        return bool(self.action)


@dataclass(frozen=True)
class AgentStep:
    """One iteration that attempted a tool call."""

    thought: Optional[str]
    action: str
    action_input: Optional[str]
    observation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "thought": self.thought,
            "action": self.action,
            "action_input": self.action_input,
            "observation": self.observation,
        }


@dataclass(frozen=True)
class AgentResult:
    """Outcome of ``ReActAgent.run``."""

    final_answer: str
    steps: Tuple[AgentStep, ...] = field(default_factory=tuple)
    iterations: int = 0
    completed: bool = False
    token_usage: Optional[TokenUsage] = None

    def __post_init__(self):
        object.__setattr__(self, "steps", tuple(self.steps))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "final_answer": self.final_answer,
            "steps": [step.to_dict() for step in self.steps],
            "iterations": self.iterations,
            "completed": self.completed,
            "token_usage": self.token_usage.to_dict() if self.token_usage else None,
        }
