"""
OpenAI chat-completions adapter.

Speaks the ``/chat/completions`` wire format directly over the shared
HTTP transport, so any OpenAI-compatible endpoint works via ``api_base``.
"""

import json
import logging
from typing import Any, Dict, Iterator, Optional

from ...errors import ProviderError
from ..base import (
    TRUNCATION_NOTICE,
    BaseLLMProvider,
    FinishReason,
    Request,
    Response,
    TokenUsage,
    iter_sse_events,
)

logger = logging.getLogger(__name__)

_FINISH_REASONS = {
    "function_call": FinishReason.TOOL_CALLS,
}


class OpenAIProvider(BaseLLMProvider):
    """OpenAI (and compatible) chat-completion provider."""

    PROVIDER_NAME = "openai"
    DISPLAY_NAME = "OpenAI"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    CHAT_ENDPOINT = "/chat/completions"

    # ── Core API ─────────────────────────────────────────────────

    def chat(self, request: Request) -> Response:
        model = self.resolve_model(request)
        body = self.build_body(request, model, stream=False)
        data = self._post(self.base_url + self.CHAT_ENDPOINT, body, self._headers())
        return self.parse_response(data)

    def chat_stream(self, request: Request) -> Iterator[Response]:
        model = self.resolve_model(request)
        body = self.build_body(request, model, stream=True)
        body["stream_options"] = {"include_usage": True}
        lines = self._stream(self.base_url + self.CHAT_ENDPOINT, body, self._headers())
        return self._iter_stream(lines, model)

    # ── Format helpers ───────────────────────────────────────────

    def build_body(self, request: Request, model: str, stream: bool = False) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "model": model,
            "messages": [msg.to_dict() for msg in request.messages],
        }
        if request.temperature is not None:
            body["temperature"] = request.temperature
        if request.max_tokens is not None:
            body["max_tokens"] = request.max_tokens
        if request.top_p is not None:
            body["top_p"] = request.top_p
        if request.stop_sequences:
            body["stop"] = list(request.stop_sequences)
        body["stream"] = stream
        body.update(request.extra_params)
        return body

    def parse_response(self, data: Dict[str, Any]) -> Response:
        if data.get("error"):
            raise self._error_from_payload(data["error"])

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise ProviderError(self.PROVIDER_NAME, "No choices in response")

        choice = choices[0]
        message = choice.get("message") or {}
        content = message.get("content")
        raw_finish = choice.get("finish_reason")
        finish_reason = FinishReason.from_value(raw_finish, _FINISH_REASONS)
        model = data.get("model")
        usage = self._parse_usage(data.get("usage"))
        metadata = {"provider": self.PROVIDER_NAME, "raw_finish_reason": raw_finish}

        if not content:
            if finish_reason == FinishReason.CONTENT_FILTER:
                raise ProviderError(self.PROVIDER_NAME, "Response withheld by content filter")
            if finish_reason == FinishReason.LENGTH:
                logger.warning("OpenAI hit the token limit before producing any content")
                content = TRUNCATION_NOTICE
            elif message.get("refusal"):
                raise ProviderError(self.PROVIDER_NAME, f"Model refused: {message['refusal']}")

        return Response(
            content=content or "",
            model=model,
            usage=usage,
            finish_reason=finish_reason,
            metadata=metadata,
        )

    @staticmethod
    def _parse_usage(usage: Optional[Dict[str, Any]]) -> Optional[TokenUsage]:
        if not isinstance(usage, dict):
            return None
        prompt = int(usage.get("prompt_tokens") or 0)
        completion = int(usage.get("completion_tokens") or 0)
        total = usage.get("total_tokens")
        return TokenUsage.of(prompt, completion, int(total) if total is not None else None)

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_key}"}

    def _iter_stream(self, lines: Iterator[str], model: str) -> Iterator[Response]:
        for _event, data in iter_sse_events(lines):
            if data.strip() == "[DONE]":
                return
            try:
                chunk = json.loads(data)
            except ValueError as e:
                raise ProviderError(self.PROVIDER_NAME, f"Malformed stream chunk: {data[:200]}") from e
            if chunk.get("error"):
                raise self._error_from_payload(chunk["error"])

            usage = self._parse_usage(chunk.get("usage"))
            choices = chunk.get("choices") or []
            delta: Dict[str, Any] = {}
            raw_finish = None
            if choices:
                delta = choices[0].get("delta") or {}
                raw_finish = choices[0].get("finish_reason")

            text = delta.get("content") or ""
            if not text and raw_finish is None and usage is None:
                continue

            yield Response(
                content=text,
                model=chunk.get("model") or model,
                usage=usage,
                finish_reason=FinishReason.from_value(raw_finish, _FINISH_REASONS),
                metadata={"provider": self.PROVIDER_NAME, "raw_finish_reason": raw_finish},
            )
