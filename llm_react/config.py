"""
Configuration classes for LLM providers and the ReAct agent.
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

from .errors import ValidationError
from .llm.retry import RetryPolicy

PROVIDER_TYPES = ("openai", "anthropic", "gemini", "google")


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for connecting to an LLM provider.

    ``api_key`` may be empty here; the provider itself refuses to start
    without one and raises ``AuthenticationError``.
    """

    provider_type: str  # "openai", "anthropic", "gemini"
    api_key: str = field(default="", repr=False)
    model_name: Optional[str] = None
    api_base: Optional[str] = None
    timeout: float = 60.0
    connect_timeout: float = 10.0
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy.default)
    enable_logging: bool = False

    def __post_init__(self):
        if not self.provider_type:
            raise ValidationError("provider_type is required")
        object.__setattr__(self, "provider_type", self.provider_type.strip().lower())
        if self.provider_type not in PROVIDER_TYPES:
            raise ValidationError(
                f"Unknown provider_type: {self.provider_type}. Available: openai, anthropic, gemini"
            )
        if self.timeout <= 0 or self.connect_timeout <= 0:
            raise ValidationError("timeouts must be positive")

    @classmethod
    def from_env(
        cls,
        provider_type: Optional[str] = None,
        env_file: Optional[str] = None,
        **overrides,
    ) -> "LLMConfig":
        """Build a config from environment variables (after loading ``.env``).

        Reads ``LLM_PROVIDER``, ``<PROVIDER>_API_KEY``, ``<PROVIDER>_BASE_URL``
        and ``LLM_MODEL``. Keyword overrides win over the environment.
        """
        load_dotenv(env_file, override=False)

        provider = (provider_type or os.getenv("LLM_PROVIDER") or "openai").strip().lower()
        prefix = "GEMINI" if provider in ("gemini", "google") else provider.upper()
        api_key = os.getenv(f"{prefix}_API_KEY") or ""
        if not api_key and prefix == "GEMINI":
            api_key = os.getenv("GOOGLE_API_KEY") or ""

        values = {
            "provider_type": provider,
            "api_key": api_key,
            "model_name": os.getenv("LLM_MODEL") or None,
            "api_base": os.getenv(f"{prefix}_BASE_URL") or None,
        }
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class AgentConfig:
    """Configuration for ReAct loop behavior."""

    max_iterations: int = 10
    temperature: Optional[float] = 0.7
    max_tokens: Optional[int] = None
    model: Optional[str] = None
    stop_sequences: Optional[Tuple[str, ...]] = None
    tool_timeout: Optional[float] = None
    multiline_final_answer: bool = False

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValidationError("max_iterations must be >= 1")
        if self.temperature is not None and not 0.0 <= self.temperature <= 2.0:
            raise ValidationError("temperature must be between 0.0 and 2.0")
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise ValidationError("max_tokens must be positive")
        if self.tool_timeout is not None and self.tool_timeout <= 0:
            raise ValidationError("tool_timeout must be positive")
