"""
LLM provider layer.

Quick start::

    from llm_react.llm import LLMClient, Request, create_llm_service

    client = LLMClient(create_llm_service("openai", api_key="sk-...", model="gpt-4o"))
    response = client.chat(Request.from_prompt("Hello!", system="You are a helpful assistant."))
    print(response.content)
"""

from dataclasses import replace
from typing import Optional

from .base import (
    BaseLLMProvider,
    FinishReason,
    Message,
    Request,
    Response,
    Role,
    TokenUsage,
)
from .client import LLMClient
from .retry import BackoffStrategy, RetryPolicy
from .services import AnthropicProvider, GeminiProvider, OpenAIProvider
from .transport import HttpTransport

DEFAULT_MODELS = {
    "openai": "gpt-4o",
    "anthropic": "claude-sonnet-4-20250514",
    "gemini": "gemini-2.5-flash",
}


def create_llm_service(
    provider: str,
    api_key: str,
    model: Optional[str] = None,
    api_base: Optional[str] = None,
    transport: Optional[HttpTransport] = None,
    **kwargs,
) -> BaseLLMProvider:
    """Factory: create a provider by name.

    Args:
        provider: ``"openai"``, ``"anthropic"`` or ``"gemini"`` (``"google"`` is an alias).
        api_key: API key for the provider.
        model: Default model identifier (uses provider default when *None*).
        api_base: Optional custom API base URL.
        transport: Optional pre-built transport (shares its connection pool).
        **kwargs: Remaining ``LLMConfig`` fields (timeout, retry_policy, ...).

    Returns:
        A validated :class:`BaseLLMProvider` instance.
    """
    from ..config import LLMConfig

    config = LLMConfig(
        provider_type=provider,
        api_key=api_key,
        model_name=model,
        api_base=api_base,
        **kwargs,
    )
    return create_from_config(config, transport=transport)


def create_from_config(config, transport: Optional[HttpTransport] = None) -> BaseLLMProvider:
    """Build the provider named by ``config.provider_type``."""
    name = "gemini" if config.provider_type == "google" else config.provider_type
    if not config.model_name:
        config = replace(config, model_name=DEFAULT_MODELS[name])

    if name == "openai":
        return OpenAIProvider(config, transport=transport)
    elif name == "anthropic":
        return AnthropicProvider(config, transport=transport)
    else:
        return GeminiProvider(config, transport=transport)


__all__ = [
    "create_llm_service",
    "create_from_config",
    "LLMClient",
    "BaseLLMProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "HttpTransport",
    "RetryPolicy",
    "BackoffStrategy",
    "Message",
    "Role",
    "Request",
    "Response",
    "TokenUsage",
    "FinishReason",
]
