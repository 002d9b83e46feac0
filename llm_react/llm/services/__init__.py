from .openai import OpenAIProvider
from .anthropic import AnthropicProvider
from .gemini import GeminiProvider

__all__ = ["OpenAIProvider", "AnthropicProvider", "GeminiProvider"]
