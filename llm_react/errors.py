"""
Error taxonomy shared by the transport, the provider adapters and the agent.

Every exception carries a ``kind`` tag so callers can match on the variant
without caring about the class that raised it.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    INVALID_REQUEST = "invalid_request"
    RATE_LIMIT = "rate_limit"
    PROVIDER = "provider"
    TRANSPORT = "transport"
    INTERRUPTED = "interrupted"
    UNSUPPORTED = "unsupported"
    TOOL_EXECUTION = "tool_execution"


class LLMError(Exception):
    """Base class for every error raised by llm_react."""

    kind: ErrorKind = ErrorKind.PROVIDER

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(LLMError, ValueError):
    """A request or config object violates its invariants."""

    kind = ErrorKind.VALIDATION


class AuthenticationError(LLMError):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, status_code: Optional[int] = 401):
        super().__init__(message, status_code)


class InvalidRequestError(LLMError):
    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str, status_code: Optional[int] = 400):
        super().__init__(message, status_code)


class ProviderError(LLMError):
    """Vendor-reported failure that fits no narrower category."""

    kind = ErrorKind.PROVIDER

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"[{provider}] {message}", status_code)
        self.provider = provider


class RateLimitError(ProviderError):
    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        provider: str,
        message: str,
        retry_after: Optional[float] = None,
        status_code: Optional[int] = 429,
    ):
        super().__init__(provider, message, status_code)
        self.retry_after = retry_after


class TransportError(LLMError):
    """Network failure, or retries exhausted at the HTTP layer."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, status_code)
        self.cause = cause


class HTTPStatusError(TransportError):
    """Non-2xx response that was not (or could no longer be) retried."""

    def __init__(
        self,
        status_code: int,
        body: str,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(
            f"HTTP request failed with status {status_code}: {body}",
            status_code=status_code,
        )
        self.body = body
        self.headers = dict(headers or {})


class RequestInterruptedError(TransportError):
    kind = ErrorKind.INTERRUPTED


class UnsupportedOperationError(LLMError, NotImplementedError):
    kind = ErrorKind.UNSUPPORTED


class ToolExecutionError(LLMError):
    """A tool failed. The agent loop turns this into an observation."""

    kind = ErrorKind.TOOL_EXECUTION

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name


def parse_retry_after(headers: Optional[Dict[str, Any]]) -> Optional[float]:
    """Seconds from a ``Retry-After`` header, or None when absent/unparseable."""
    if not headers:
        return None
    raw = None
    for key, value in headers.items():
        if str(key).lower() == "retry-after":
            raw = value
            break
    if raw is None:
        return None
    try:
        seconds = float(str(raw).strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None
