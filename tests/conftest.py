"""Pytest configuration and shared test doubles.

Nothing here touches the network: providers are wired to
``httpx.MockTransport`` handlers and the agent talks to scripted clients.
"""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

import httpx
import pytest

from llm_react.config import LLMConfig
from llm_react.llm.base import Request, Response, TokenUsage
from llm_react.llm.retry import BackoffStrategy, RetryPolicy
from llm_react.llm.transport import HttpTransport
from llm_react.tools import Tool

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class ScriptedLLM:
    """LLM client double that replays canned replies and records requests.

    Once the script runs out the last reply repeats, which is how the
    "model never finishes" scenarios are expressed.
    """

    replies: list[str | Response | Exception]
    requests: list[Request] = field(default_factory=list)
    closed: bool = False

    def chat(self, request: Request) -> Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.replies)) - 1
        reply = self.replies[index]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, Response):
            return reply
        return Response(content=reply, model="test-model")

    def chat_stream(self, request: Request) -> Iterator[Response]:
        yield self.chat(request)

    def close(self) -> None:
        self.closed = True


class SlowTool(Tool):
    """Sleeps for a fixed time and records how many calls overlapped."""

    name = "Slow"
    description = "Takes a while."

    def __init__(self, seconds: float):
        self.seconds = seconds
        self.active = 0
        self.peak = 0
        self.calls = 0
        self._lock = threading.Lock()

    def execute(self, tool_input: str) -> str:
        with self._lock:
            self.active += 1
            self.calls += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(self.seconds)
        finally:
            with self._lock:
                self.active -= 1
        return f"slept on {tool_input}"


@dataclass
class RecordingSleep:
    """Stands in for ``time.sleep`` and remembers every requested delay."""

    delays: list[float] = field(default_factory=list)

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@dataclass
class HandlerLog:
    requests: list[httpx.Request] = field(default_factory=list)

    def json_bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fast_policy() -> RetryPolicy:
    return RetryPolicy(
        max_retries=2,
        backoff_strategy=BackoffStrategy.EXPONENTIAL,
        initial_backoff=0.1,
        max_backoff=1.0,
        retryable_status_codes={429, 500, 503},
    )


@pytest.fixture
def make_transport(
    sleep: RecordingSleep, fast_policy: RetryPolicy
) -> Callable[..., tuple[HttpTransport, HandlerLog]]:
    """Build a transport whose HTTP layer is a scripted handler.

    ``responses`` items are either ``httpx.Response`` objects or exceptions
    to raise; the last item repeats once the list is exhausted.
    """

    def _make(
        responses: list[httpx.Response | Exception],
        policy: RetryPolicy | None = None,
    ) -> tuple[HttpTransport, HandlerLog]:
        log = HandlerLog()

        def handler(request: httpx.Request) -> httpx.Response:
            log.requests.append(request)
            item = responses[min(len(log.requests), len(responses)) - 1]
            if isinstance(item, Exception):
                raise item
            return item

        client = httpx.Client(transport=httpx.MockTransport(handler))
        transport = HttpTransport(retry_policy=policy or fast_policy, client=client, sleep=sleep)
        return transport, log

    return _make


@pytest.fixture
def make_config() -> Callable[..., LLMConfig]:
    def _make(provider_type: str, **kwargs: Any) -> LLMConfig:
        kwargs.setdefault("api_key", "test-key")
        kwargs.setdefault("model_name", "test-model")
        return LLMConfig(provider_type=provider_type, **kwargs)

    return _make


def json_response(status: int, payload: Any, headers: dict[str, str] | None = None) -> httpx.Response:
    return httpx.Response(status, json=payload, headers=headers)


def sse_response(events: list[str]) -> httpx.Response:
    body = "".join(f"{event}\n\n" for event in events)
    return httpx.Response(200, content=body.encode("utf-8"), headers={"content-type": "text/event-stream"})


def usage(prompt: int, completion: int) -> TokenUsage:
    return TokenUsage.of(prompt, completion)
