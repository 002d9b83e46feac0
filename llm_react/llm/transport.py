"""
HTTP transport with retry/backoff.

Knows nothing about vendor JSON: it sends bytes, applies the retry policy and
hands back the raw response body (or raises from the error taxonomy).
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional, Union

import httpx

from ..errors import HTTPStatusError, RequestInterruptedError, TransportError
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


class HttpTransport:
    """
    Synchronous HTTP client wrapper shared by all calls of one provider.

    The underlying ``httpx.Client`` keeps a connection pool, so reuse one
    transport per provider instead of creating one per request.

    Interruption: ``time.sleep`` resumes after signals on its own (PEP 475),
    so a backoff counts as interrupted only when the ``sleep`` callable
    raises ``InterruptedError``. That surfaces as ``RequestInterruptedError``
    and is not retried. ``KeyboardInterrupt`` is left alone and propagates
    unchanged.

    Example::

        transport = HttpTransport(retry_policy=RetryPolicy.default(), timeout=30)
        body = transport.post("https://api.example.com/v1/chat", {"q": "hi"})
        transport.close()
    """

    def __init__(
        self,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = 60.0,
        connect_timeout: float = 10.0,
        enable_logging: bool = False,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.retry_policy = retry_policy or RetryPolicy.default()
        self.enable_logging = enable_logging
        self._sleep = sleep
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(timeout, connect=connect_timeout)
        )

    # ── Public API ───────────────────────────────────────────────

    def post(
        self,
        url: str,
        body: Union[str, Dict[str, Any]],
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        """POST a JSON body and return the raw response text."""
        return self.execute_with_retry(self._build_post(url, body, headers))

    def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> str:
        return self.execute_with_retry(
            self.client.build_request("GET", url, headers=headers)
        )

    def stream_lines(
        self,
        url: str,
        body: Union[str, Dict[str, Any]],
        headers: Optional[Dict[str, str]] = None,
    ) -> Iterator[str]:
        """POST a JSON body and iterate over the response lines as they arrive.

        The retry policy covers opening the stream: connection failures and
        retryable statuses are retried before the first line is handed out.
        Errors therefore surface from this call, not from the first ``next()``.
        """
        request = self._build_post(url, body, headers)
        response = self._send_with_retry(request, stream=True)
        return self._iter_lines(response)

    def execute_with_retry(self, request: httpx.Request) -> str:
        response = self._send_with_retry(request, stream=False)
        return response.text

    def close(self) -> None:
        """Release pooled connections (only when this transport created the client)."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ── Internals ────────────────────────────────────────────────

    def _build_post(
        self,
        url: str,
        body: Union[str, Dict[str, Any]],
        headers: Optional[Dict[str, str]],
    ) -> httpx.Request:
        content = body if isinstance(body, str) else json.dumps(body)
        merged = {"Content-Type": JSON_CONTENT_TYPE}
        merged.update(headers or {})
        return self.client.build_request(
            "POST", url, content=content.encode("utf-8"), headers=merged
        )

    def _send_with_retry(self, request: httpx.Request, stream: bool) -> httpx.Response:
        policy = self.retry_policy
        attempt = 0
        last_error: Optional[TransportError] = None

        while attempt <= policy.max_retries:
            if attempt > 0:
                delay = policy.calculate_backoff(attempt - 1)
                if self.enable_logging:
                    logger.info(
                        f"Retrying request after {delay:.3f}s "
                        f"(attempt {attempt}/{policy.max_retries})"
                    )
                try:
                    self._sleep(delay)
                except InterruptedError as e:
                    raise RequestInterruptedError("Request interrupted", cause=e) from e

            if self.enable_logging:
                logger.debug(f"Executing HTTP {request.method} to {_redact(request.url)}")

            try:
                response = self.client.send(request, stream=stream)
                if not response.is_success:
                    try:
                        response.read()
                    finally:
                        response.close()
            except httpx.TransportError as e:
                if self.enable_logging:
                    logger.error(f"HTTP request failed: {type(e).__name__}: {e}")
                last_error = TransportError(f"HTTP request failed: {e}", cause=e)
                if attempt >= policy.max_retries:
                    raise last_error from e
                attempt += 1
                continue

            if response.is_success:
                if self.enable_logging:
                    logger.debug(f"HTTP request succeeded with status {response.status_code}")
                return response

            status = response.status_code
            body = response.text

            if self.enable_logging:
                logger.warning(f"HTTP request failed with status {status}: {body[:500]}")

            if attempt < policy.max_retries and policy.is_retryable(status):
                last_error = HTTPStatusError(status, body, dict(response.headers))
                attempt += 1
                continue

            raise HTTPStatusError(status, body, dict(response.headers))

        raise last_error or TransportError(
            f"Request failed after {policy.max_retries} retries"
        )

    def _iter_lines(self, response: httpx.Response) -> Iterator[str]:
        try:
            for line in response.iter_lines():
                yield line
        except httpx.TransportError as e:
            raise TransportError(f"Stream interrupted: {e}", cause=e) from e
        finally:
            response.close()


def _redact(url: httpx.URL) -> str:
    """URL without query string; some vendors pass API keys as query params."""
    return str(url.copy_with(query=None))
