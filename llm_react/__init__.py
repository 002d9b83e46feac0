"""
llm_react – LLM provider adapters, a retrying HTTP transport and a ReAct agent loop.

Usage::

    from llm_react import LLMConfig, ReActAgent
    from llm_react.tools import CalculatorTool, ToolRegistry

    # 1. Configure
    llm_config = LLMConfig(provider_type="openai", api_key="sk-...", model_name="gpt-4o")

    # 2. (Optional) register tools
    tools = ToolRegistry([CalculatorTool()])
    tools.register_function(
        name="Weather",
        description="Get weather for a city. Input: the city name.",
        function=lambda city: f"Sunny in {city}",
    )

    # 3. Create & run
    agent = ReActAgent(llm_config=llm_config, tools=tools)
    result = agent.run("What's 15 * 23, and is it sunny in London?")
    print(result.final_answer)
"""

from .agent import ReActAgent
from .config import AgentConfig, LLMConfig
from .errors import (
    AuthenticationError,
    ErrorKind,
    InvalidRequestError,
    LLMError,
    ProviderError,
    RateLimitError,
    ToolExecutionError,
    TransportError,
    ValidationError,
)
from .llm import LLMClient, Message, Request, Response, create_llm_service
from .models import AgentResult, AgentStep

__all__ = [
    "ReActAgent",
    "AgentConfig",
    "LLMConfig",
    "AgentResult",
    "AgentStep",
    "LLMClient",
    "Message",
    "Request",
    "Response",
    "create_llm_service",
    "ErrorKind",
    "LLMError",
    "ValidationError",
    "AuthenticationError",
    "InvalidRequestError",
    "RateLimitError",
    "ProviderError",
    "TransportError",
    "ToolExecutionError",
]
