"""Vendor-neutral request/response value objects."""

from __future__ import annotations

import pytest

from llm_react.errors import ValidationError
from llm_react.llm.base import FinishReason, Message, Request, Response, Role, TokenUsage, iter_sse_events

pytestmark = pytest.mark.unit


def test_message_role_is_coerced_from_string() -> None:
    msg = Message(role="user", content="hi")

    assert msg.role is Role.USER
    assert msg.to_dict() == {"role": "user", "content": "hi"}


def test_message_name_is_included_when_set() -> None:
    assert Message.user("hi", name="alice").to_dict()["name"] == "alice"


def test_unknown_role_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Message(role="tool", content="x")


def test_message_content_cannot_be_none() -> None:
    with pytest.raises(ValidationError):
        Message.user(None)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"temperature": -0.1},
        {"temperature": 2.1},
        {"max_tokens": 0},
        {"top_p": 1.5},
    ],
)
def test_request_rejects_out_of_range_parameters(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        Request(messages=[Message.user("hi")], **kwargs)


def test_request_requires_messages() -> None:
    with pytest.raises(ValidationError):
        Request(messages=[])


def test_request_boundaries_are_inclusive() -> None:
    request = Request(messages=[Message.user("hi")], temperature=2.0, top_p=0.0, max_tokens=1)

    assert request.temperature == 2.0


def test_request_is_immutable() -> None:
    request = Request.from_prompt("hi", system="sys", extra_params={"seed": 1})

    assert isinstance(request.messages, tuple)
    with pytest.raises(TypeError):
        request.extra_params["seed"] = 2  # type: ignore[index]


def test_split_system_keeps_first_system_and_order() -> None:
    request = Request(
        messages=[
            Message.user("u1"),
            Message.system("first"),
            Message.assistant("a1"),
            Message.system("second"),
            Message.user("u2"),
        ]
    )

    system, rest = request.split_system()

    assert system == "first"
    assert [m.content for m in rest] == ["u1", "a1", "u2"]


def test_token_usage_adds_up() -> None:
    total = TokenUsage.of(10, 5) + TokenUsage.of(3, 2, 6)

    assert total == TokenUsage(13, 7, 21)
    assert total.to_dict() == {"prompt_tokens": 13, "completion_tokens": 7, "total_tokens": 21}


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("stop", FinishReason.STOP), ("LENGTH", FinishReason.LENGTH), (None, FinishReason.UNKNOWN), ("weird", FinishReason.UNKNOWN)],
)
def test_finish_reason_from_value(raw: str | None, expected: FinishReason) -> None:
    assert FinishReason.from_value(raw) is expected


def test_response_defaults() -> None:
    response = Response()

    assert response.content == ""
    assert response.finish_reason is FinishReason.UNKNOWN
    assert dict(response.metadata) == {}


def test_sse_events_are_grouped() -> None:
    lines = [
        ": keep-alive",
        "event: message_start",
        'data: {"a": 1}',
        "",
        "data: line1",
        "data: line2",
        "",
        "data: [DONE]",
    ]

    assert list(iter_sse_events(lines)) == [
        ("message_start", '{"a": 1}'),
        (None, "line1\nline2"),
        (None, "[DONE]"),
    ]
