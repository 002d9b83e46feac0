"""
Generic client boundary: one object the agent talks to, whatever the vendor.
"""

import logging
from typing import Iterator

from ..errors import ValidationError
from .base import BaseLLMProvider, Request, Response

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Delegates to exactly one provider chosen at construction time.

    Example::

        client = LLMClient(create_llm_service("openai", api_key="sk-...", model="gpt-4o"))
        response = client.chat(Request.from_prompt("Hello!"))
        print(response.content)
    """

    def __init__(self, provider: BaseLLMProvider):
        if provider is None:
            raise ValidationError("provider cannot be None")
        self.provider = provider
        self.provider.validate()

    def chat(self, request: Request) -> Response:
        if request is None:
            raise ValidationError("request cannot be None")
        return self.provider.chat(request)

    def chat_stream(self, request: Request) -> Iterator[Response]:
        if request is None:
            raise ValidationError("request cannot be None")
        return self.provider.chat_stream(request)

    def provider_name(self) -> str:
        return self.provider.provider_name()

    def close(self) -> None:
        self.provider.close()

    def __enter__(self) -> "LLMClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
