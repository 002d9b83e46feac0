"""
Base LLM types and the abstract provider interface.

Defines the vendor-neutral request/response model (Message, Request,
Response) and the BaseLLMProvider that all vendor adapters extend.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ..errors import (
    AuthenticationError,
    HTTPStatusError,
    InvalidRequestError,
    LLMError,
    ProviderError,
    RateLimitError,
    UnsupportedOperationError,
    ValidationError,
    parse_retry_after,
)
from .transport import HttpTransport

if TYPE_CHECKING:
    from ..config import LLMConfig

logger = logging.getLogger(__name__)

TRUNCATION_NOTICE = (
    "[Response truncated: model hit token limit before generating output. "
    "Please increase max_tokens.]"
)


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single conversation turn. Order within a Request is chronological."""

    role: Role
    content: str
    name: Optional[str] = None

    def __post_init__(self):
        try:
            object.__setattr__(self, "role", Role(self.role))
        except ValueError as e:
            raise ValidationError(f"Unknown role: {self.role}") from e
        if self.content is None:
            raise ValidationError("message content cannot be None")

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.name:
            d["name"] = self.name
        return d

    # ── Factory helpers ──────────────────────────────────────────

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str, name: Optional[str] = None) -> "Message":
        return cls(role=Role.USER, content=content, name=name)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)


@dataclass(frozen=True)
class Request:
    """A chat request. Invariants are checked on construction, before any I/O."""

    messages: Tuple[Message, ...]
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    stop_sequences: Optional[Tuple[str, ...]] = None
    extra_params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "messages", tuple(self.messages or ()))
        if self.stop_sequences is not None:
            object.__setattr__(self, "stop_sequences", tuple(self.stop_sequences))
        object.__setattr__(self, "extra_params", MappingProxyType(dict(self.extra_params or {})))

        if not self.messages:
            raise ValidationError("messages cannot be empty")
        if self.temperature is not None and not 0.0 <= self.temperature <= 2.0:
            raise ValidationError("temperature must be between 0.0 and 2.0")
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise ValidationError("max_tokens must be positive")
        if self.top_p is not None and not 0.0 <= self.top_p <= 1.0:
            raise ValidationError("top_p must be between 0.0 and 1.0")

    @classmethod
    def from_prompt(cls, user: str, system: Optional[str] = None, **kwargs) -> "Request":
        messages: List[Message] = []
        if system is not None:
            messages.append(Message.system(system))
        messages.append(Message.user(user))
        return cls(messages=tuple(messages), **kwargs)

    def split_system(self) -> Tuple[Optional[str], List[Message]]:
        """Return (first system message content, remaining messages in order).

        Only the first system message is lifted out; any later ones are
        dropped, since vendors that need this split accept a single system
        prompt.
        """
        system: Optional[str] = None
        rest: List[Message] = []
        for msg in self.messages:
            if msg.role == Role.SYSTEM:
                if system is None:
                    system = msg.content
                else:
                    logger.warning("Dropping additional system message; only the first is sent")
                continue
            rest.append(msg)
        return system, rest


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

    @classmethod
    def of(cls, prompt: int, completion: int, total: Optional[int] = None) -> "TokenUsage":
        return cls(prompt, completion, prompt + completion if total is None else total)

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            self.prompt_tokens + other.prompt_tokens,
            self.completion_tokens + other.completion_tokens,
            self.total_tokens + other.total_tokens,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


class FinishReason(str, Enum):
    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content_filter"
    TOOL_CALLS = "tool_calls"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(
        cls, value: Optional[str], aliases: Optional[Mapping[str, "FinishReason"]] = None
    ) -> "FinishReason":
        if not value:
            return cls.UNKNOWN
        if aliases and value in aliases:
            return aliases[value]
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class Response:
    """Vendor-neutral chat response (or one partial chunk of a stream)."""

    content: str = ""
    model: Optional[str] = None
    usage: Optional[TokenUsage] = None
    finish_reason: FinishReason = FinishReason.UNKNOWN
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))


class BaseLLMProvider(ABC):
    """
    Abstract base for vendor adapters.

    Subclasses implement ``chat`` and, when the vendor supports it,
    ``chat_stream``. Credentials are checked in ``__init__`` so a
    misconfigured provider fails at construction, not on first use.
    """

    PROVIDER_NAME = "base"
    DISPLAY_NAME = "LLM"
    DEFAULT_BASE_URL = ""

    def __init__(self, config: "LLMConfig", transport: Optional[HttpTransport] = None):
        self.config = config
        self.validate()
        self.base_url = (config.api_base or self.DEFAULT_BASE_URL).rstrip("/")
        self.transport = transport or HttpTransport(
            retry_policy=config.retry_policy,
            timeout=config.timeout,
            connect_timeout=config.connect_timeout,
            enable_logging=config.enable_logging,
        )

    # ── Contract ─────────────────────────────────────────────────

    @abstractmethod
    def chat(self, request: Request) -> Response:
        ...

    def chat_stream(self, request: Request) -> Iterator[Response]:
        raise UnsupportedOperationError(
            f"Streaming is not supported by the {self.provider_name()} provider"
        )

    def provider_name(self) -> str:
        return self.PROVIDER_NAME

    def validate(self) -> None:
        if not self.config.api_key:
            raise AuthenticationError(f"{self.DISPLAY_NAME} API key is required", status_code=None)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ── Helpers for subclasses ───────────────────────────────────

    def resolve_model(self, request: Request) -> str:
        model = request.model or self.config.model_name
        if not model:
            raise InvalidRequestError("Model must be specified either in request or config")
        return model

    def _post(self, url: str, body: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        try:
            raw = self.transport.post(url, body, headers)
        except HTTPStatusError as e:
            raise self._error_from_http(e) from e
        return self._load_json(raw)

    def _get(self, url: str, headers: Dict[str, str]) -> Dict[str, Any]:
        try:
            raw = self.transport.get(url, headers)
        except HTTPStatusError as e:
            raise self._error_from_http(e) from e
        return self._load_json(raw)

    def _stream(self, url: str, body: Dict[str, Any], headers: Dict[str, str]) -> Iterator[str]:
        try:
            return self.transport.stream_lines(url, body, headers)
        except HTTPStatusError as e:
            raise self._error_from_http(e) from e

    def _load_json(self, raw: str) -> Dict[str, Any]:
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ProviderError(self.provider_name(), f"Failed to parse response: {e}") from e
        if not isinstance(data, dict):
            raise ProviderError(self.provider_name(), "Unexpected response shape: expected a JSON object")
        return data

    def _error_from_http(self, exc: HTTPStatusError) -> LLMError:
        """Map a non-2xx response onto the error taxonomy."""
        error: Dict[str, Any] = {}
        try:
            payload = json.loads(exc.body) if exc.body else {}
            if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
                error = payload["error"]
        except ValueError:
            pass
        if not error:
            error = {"message": exc.body or f"HTTP {exc.status_code}"}
        return self._error_from_payload(error, exc.status_code, exc.headers)

    def _error_from_payload(
        self,
        error: Any,
        status_code: Optional[int] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> LLMError:
        """Classify a vendor ``error`` object (from a 2xx or non-2xx body)."""
        if not isinstance(error, Mapping):
            error = {"message": str(error) if error else None}
        message = str(error.get("message") or "Unknown error")
        return classify_error(
            self.provider_name(),
            message,
            error_type=error.get("type"),
            status_code=status_code,
            retry_after=parse_retry_after(dict(headers or {})),
        )


_AUTH_TYPES = {"authentication_error", "permission_error"}
_INVALID_TYPES = {"invalid_request_error", "not_found_error"}
_RATE_LIMIT_TYPES = {"rate_limit_error"}


def classify_error(
    provider: str,
    message: str,
    error_type: Optional[str] = None,
    status_code: Optional[int] = None,
    retry_after: Optional[float] = None,
) -> LLMError:
    """Shared vendor-error → taxonomy mapping.

    The HTTP status wins over the vendor's type string: OpenAI, for example,
    reports a bad API key as ``invalid_request_error`` with status 401.
    """
    if status_code in (401, 403) or error_type in _AUTH_TYPES:
        return AuthenticationError(message, status_code=status_code or 401)
    if status_code == 429 or error_type in _RATE_LIMIT_TYPES:
        return RateLimitError(provider, message, retry_after=retry_after, status_code=status_code or 429)
    if status_code in (400, 404, 413, 422) or error_type in _INVALID_TYPES:
        return InvalidRequestError(message, status_code=status_code or 400)
    return ProviderError(provider, message, status_code=status_code)


def iter_sse_events(lines: Iterable[str]) -> Iterator[Tuple[Optional[str], str]]:
    """Group server-sent-event lines into ``(event, data)`` pairs."""
    event: Optional[str] = None
    data: List[str] = []
    for line in lines:
        if not line:
            if data:
                yield event, "\n".join(data)
            event, data = None, []
            continue
        if line.startswith(":"):
            continue
        key, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if key == "event":
            event = value
        elif key == "data":
            data.append(value)
    if data:
        yield event, "\n".join(data)
