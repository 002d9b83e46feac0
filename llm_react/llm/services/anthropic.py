"""
Anthropic Messages API adapter.
"""

import json
import logging
from typing import Any, Dict, Iterator, List, Optional

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

DEFAULT_MAX_TOKENS = 1024

_FINISH_REASONS = {
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "max_tokens": FinishReason.LENGTH,
    "tool_use": FinishReason.TOOL_CALLS,
    "refusal": FinishReason.CONTENT_FILTER,
}


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude provider.

    The Messages API has no ``system`` role inside ``messages``; the first
    system message is sent as the top-level ``system`` field instead, and
    ``max_tokens`` is always sent because the API requires it.
    """

    PROVIDER_NAME = "anthropic"
    DISPLAY_NAME = "Anthropic"
    DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
    MESSAGES_ENDPOINT = "/messages"
    ANTHROPIC_VERSION = "2023-06-01"

    # ── Core API ─────────────────────────────────────────────────

    def chat(self, request: Request) -> Response:
        model = self.resolve_model(request)
        body = self.build_body(request, model, stream=False)
        data = self._post(self.base_url + self.MESSAGES_ENDPOINT, body, self._headers())
        return self.parse_response(data)

    def chat_stream(self, request: Request) -> Iterator[Response]:
        model = self.resolve_model(request)
        body = self.build_body(request, model, stream=True)
        lines = self._stream(self.base_url + self.MESSAGES_ENDPOINT, body, self._headers())
        return self._iter_stream(lines, model)

    # ── Format helpers ───────────────────────────────────────────

    def build_body(self, request: Request, model: str, stream: bool = False) -> Dict[str, Any]:
        system, rest = request.split_system()
        body: Dict[str, Any] = {
            "model": model,
            "messages": [{"role": msg.role.value, "content": msg.content} for msg in rest],
        }
        if system is not None:
            body["system"] = system
        body["max_tokens"] = request.max_tokens if request.max_tokens is not None else DEFAULT_MAX_TOKENS
        if request.temperature is not None:
            body["temperature"] = request.temperature
        if request.top_p is not None:
            body["top_p"] = request.top_p
        if request.stop_sequences:
            body["stop_sequences"] = list(request.stop_sequences)
        body["stream"] = stream
        body.update(request.extra_params)
        return body

    def parse_response(self, data: Dict[str, Any]) -> Response:
        if data.get("type") == "error" or data.get("error"):
            raise self._error_from_payload(data.get("error"))

        raw_finish = data.get("stop_reason")
        finish_reason = FinishReason.from_value(raw_finish, _FINISH_REASONS)
        text = self._extract_text(data.get("content"))
        metadata = {"provider": self.PROVIDER_NAME, "raw_finish_reason": raw_finish}

        if text is None:
            if finish_reason == FinishReason.CONTENT_FILTER:
                raise ProviderError(self.PROVIDER_NAME, "Response withheld: model declined to answer")
            if finish_reason != FinishReason.LENGTH:
                raise ProviderError(self.PROVIDER_NAME, "No content in response")
            logger.warning("Anthropic hit the token limit before producing any text")
            text = TRUNCATION_NOTICE

        return Response(
            content=text,
            model=data.get("model"),
            usage=self._parse_usage(data.get("usage")),
            finish_reason=finish_reason,
            metadata=metadata,
        )

    @staticmethod
    def _extract_text(blocks: Optional[List[Any]]) -> Optional[str]:
        if not isinstance(blocks, list):
            return None
        parts = [
            str(block.get("text") or "")
            for block in blocks
            if isinstance(block, dict) and block.get("type", "text") == "text"
        ]
        return "".join(parts) if parts else None

    @staticmethod
    def _parse_usage(usage: Optional[Dict[str, Any]]) -> Optional[TokenUsage]:
        if not isinstance(usage, dict):
            return None
        return TokenUsage.of(int(usage.get("input_tokens") or 0), int(usage.get("output_tokens") or 0))

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.config.api_key,
            "anthropic-version": self.ANTHROPIC_VERSION,
        }

    def _iter_stream(self, lines: Iterator[str], model: str) -> Iterator[Response]:
        input_tokens = 0
        for event, data in iter_sse_events(lines):
            try:
                payload = json.loads(data)
            except ValueError as e:
                raise ProviderError(self.PROVIDER_NAME, f"Malformed stream event: {data[:200]}") from e
            kind = payload.get("type") or event

            if kind == "error":
                raise self._error_from_payload(payload.get("error"))

            if kind == "message_start":
                message = payload.get("message") or {}
                model = message.get("model") or model
                input_tokens = int((message.get("usage") or {}).get("input_tokens") or 0)

            elif kind == "content_block_delta":
                delta = payload.get("delta") or {}
                if delta.get("text"):
                    yield Response(
                        content=delta["text"],
                        model=model,
                        metadata={"provider": self.PROVIDER_NAME},
                    )

            elif kind == "message_delta":
                raw_finish = (payload.get("delta") or {}).get("stop_reason")
                output_tokens = int((payload.get("usage") or {}).get("output_tokens") or 0)
                yield Response(
                    content="",
                    model=model,
                    usage=TokenUsage.of(input_tokens, output_tokens),
                    finish_reason=FinishReason.from_value(raw_finish, _FINISH_REASONS),
                    metadata={"provider": self.PROVIDER_NAME, "raw_finish_reason": raw_finish},
                )

            elif kind == "message_stop":
                return
