"""
Google Gemini generate-content adapter.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from ...errors import LLMError, ProviderError, parse_retry_after
from ..base import (
    TRUNCATION_NOTICE,
    BaseLLMProvider,
    FinishReason,
    Request,
    Response,
    Role,
    TokenUsage,
    classify_error,
)

logger = logging.getLogger(__name__)

_BLOCKED_FINISH_REASONS = {"SAFETY", "RECITATION", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII"}

_FINISH_REASONS = {
    "STOP": FinishReason.STOP,
    "MAX_TOKENS": FinishReason.LENGTH,
    **{reason: FinishReason.CONTENT_FILTER for reason in _BLOCKED_FINISH_REASONS},
}

# google.rpc status → shared error types
_STATUS_TYPES = {
    "UNAUTHENTICATED": "authentication_error",
    "PERMISSION_DENIED": "permission_error",
    "INVALID_ARGUMENT": "invalid_request_error",
    "FAILED_PRECONDITION": "invalid_request_error",
    "NOT_FOUND": "not_found_error",
    "RESOURCE_EXHAUSTED": "rate_limit_error",
}


class GeminiProvider(BaseLLMProvider):
    """Google Gemini provider.

    The v1 ``generateContent`` endpoint takes no system instruction, so the
    first system message is prepended to the first user turn. Streaming is
    not supported: ``chat_stream`` raises ``UnsupportedOperationError``.
    """

    PROVIDER_NAME = "gemini"
    DISPLAY_NAME = "Google"
    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1"

    # ── Core API ─────────────────────────────────────────────────

    def chat(self, request: Request) -> Response:
        model = self.resolve_model(request)
        url = f"{self.base_url}/models/{model}:generateContent"
        data = self._post(url, self.build_body(request), self._headers())
        return self.parse_response(data, model)

    def list_models(self) -> List[Dict[str, Any]]:
        """Raw model descriptors as returned by ``GET /models``."""
        data = self._get(f"{self.base_url}/models", self._headers())
        if data.get("error"):
            raise self._error_from_payload(data["error"])
        models = data.get("models")
        return [m for m in models if isinstance(m, dict)] if isinstance(models, list) else []

    def first_available_model(self) -> Optional[str]:
        """First ``gemini`` model that supports ``generateContent``, without the ``models/`` prefix."""
        for model in self.list_models():
            model_id = str(model.get("name") or "").replace("models/", "", 1)
            methods = model.get("supportedGenerationMethods") or []
            if "gemini" in model_id and "generateContent" in methods:
                return model_id
        return None

    # ── Format helpers ───────────────────────────────────────────

    def build_body(self, request: Request) -> Dict[str, Any]:
        system, rest = request.split_system()
        contents: List[Dict[str, Any]] = []
        pending_system = system

        for msg in rest:
            role = "model" if msg.role == Role.ASSISTANT else "user"
            text = msg.content
            if role == "user" and pending_system is not None:
                text = f"{pending_system}\n\n{text}"
                pending_system = None
            contents.append({"role": role, "parts": [{"text": text}]})

        if pending_system is not None:
            # No user turn to merge into; the instruction becomes the opening turn.
            contents.insert(0, {"role": "user", "parts": [{"text": pending_system}]})

        body: Dict[str, Any] = {"contents": contents}

        generation_config: Dict[str, Any] = {}
        if request.temperature is not None:
            generation_config["temperature"] = request.temperature
        if request.max_tokens is not None:
            generation_config["maxOutputTokens"] = request.max_tokens
        if request.top_p is not None:
            generation_config["topP"] = request.top_p
        if request.stop_sequences:
            generation_config["stopSequences"] = list(request.stop_sequences)
        if generation_config:
            body["generationConfig"] = generation_config

        body.update(request.extra_params)
        return body

    def parse_response(self, data: Dict[str, Any], model: str) -> Response:
        if data.get("error"):
            raise self._error_from_payload(data["error"])

        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                raise ProviderError(self.PROVIDER_NAME, f"Content blocked by safety filters: {block_reason}")
            raise ProviderError(self.PROVIDER_NAME, "No candidates in response")

        candidate = candidates[0]
        raw_finish = candidate.get("finishReason")
        finish_reason = FinishReason.from_value(raw_finish, _FINISH_REASONS)
        metadata = {"provider": self.PROVIDER_NAME, "raw_finish_reason": raw_finish}

        if raw_finish in _BLOCKED_FINISH_REASONS:
            ratings = candidate.get("safetyRatings")
            detail = f" Safety ratings: {json.dumps(ratings)}" if ratings else ""
            raise ProviderError(self.PROVIDER_NAME, f"Content blocked by safety filters ({raw_finish}).{detail}")

        usage = self._parse_usage(data.get("usageMetadata"))
        parts = (candidate.get("content") or {}).get("parts")

        if not isinstance(parts, list) or not parts:
            # Thinking models can spend the whole budget before emitting a part.
            if raw_finish == "MAX_TOKENS":
                logger.warning(f"Gemini model {model} hit the token limit before generating output")
                return Response(
                    content=TRUNCATION_NOTICE,
                    model=model,
                    usage=usage,
                    finish_reason=finish_reason,
                    metadata=metadata,
                )
            raise ProviderError(self.PROVIDER_NAME, "No parts in response")

        texts = [
            str(part["text"])
            for part in parts
            if isinstance(part, dict) and "text" in part and not part.get("thought")
        ]
        if not texts:
            raise ProviderError(self.PROVIDER_NAME, "No text in response parts")

        return Response(
            content="".join(texts),
            model=data.get("modelVersion") or model,
            usage=usage,
            finish_reason=finish_reason,
            metadata=metadata,
        )

    @staticmethod
    def _parse_usage(usage: Optional[Dict[str, Any]]) -> Optional[TokenUsage]:
        if not isinstance(usage, dict):
            return None
        prompt = int(usage.get("promptTokenCount") or 0)
        completion = int(usage.get("candidatesTokenCount") or 0)
        total = usage.get("totalTokenCount")
        return TokenUsage.of(prompt, completion, int(total) if total is not None else None)

    def _headers(self) -> Dict[str, str]:
        return {"x-goog-api-key": self.config.api_key}

    def _error_from_payload(
        self,
        error: Any,
        status_code: Optional[int] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> LLMError:
        if not isinstance(error, Mapping):
            return super()._error_from_payload(error, status_code, headers)
        code = error.get("code")
        if status_code is None and isinstance(code, int):
            status_code = code
        return classify_error(
            self.PROVIDER_NAME,
            str(error.get("message") or "Unknown error"),
            error_type=_STATUS_TYPES.get(str(error.get("status") or "")),
            status_code=status_code,
            retry_after=parse_retry_after(dict(headers or {})),
        )
