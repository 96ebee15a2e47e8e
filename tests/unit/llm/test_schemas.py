"""LLM schema tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from coda.llm.schemas import (
    CompleteParams,
    CompleteResponse,
    CompletionMetadata,
    FunctionCall,
    Message,
    Role,
)


class TestMessage:
    """Tests for Message helpers."""

    def test_constructors_set_roles(self) -> None:
        """Shortcut constructors set the matching role."""
        assert Message.system("s").role == Role.SYSTEM
        assert Message.user("u").role == Role.USER
        assert Message.assistant("a").role == Role.ASSISTANT

        function = Message.function("lookup", "42")
        assert function.role == Role.FUNCTION
        assert function.name == "lookup"
        assert function.is_function is True

    def test_rejects_unknown_role(self) -> None:
        """Only known roles validate."""
        with pytest.raises(ValidationError):
            Message(role="tool", content="x")

    def test_function_name_prefers_call(self) -> None:
        """The function call name wins over the message name."""
        message = Message(
            role=Role.ASSISTANT,
            content="",
            name="fallback",
            function_call=FunctionCall(name="search"),
        )

        assert message.is_function_call is True
        assert message.function_name == "search"

    def test_function_name_falls_back_to_name(self) -> None:
        """Uses the message name without a call."""
        assert Message.function("lookup", "ok").function_name == "lookup"

    def test_status_flags(self) -> None:
        """Error and completion flags reflect the fields."""
        message = Message.assistant("partial")
        assert message.is_error is False
        assert message.is_completed is False

        message = Message(role=Role.ASSISTANT, content="done", finish_reason="stop", error="boom")
        assert message.is_error is True
        assert message.is_completed is True

    def test_to_wire(self) -> None:
        """Serializes role and content only when nothing else is set."""
        assert Message.user("hi").to_wire() == {"role": "user", "content": "hi"}
        assert Message.function("f", "r").to_wire() == {
            "role": "function",
            "content": "r",
            "name": "f",
        }


class TestFunctionCall:
    """Tests for FunctionCall arguments."""

    def test_arguments_round_trip(self) -> None:
        """Encodes and decodes JSON arguments."""
        call = FunctionCall(name="search")
        call.set_arguments({"query": "python", "limit": 3})

        assert call.parse_arguments() == {"query": "python", "limit": 3}


class TestCompleteParams:
    """Tests for CompleteParams validation."""

    def test_optional_fields_default_to_none(self) -> None:
        """Unset sampling parameters stay None."""
        params = CompleteParams(messages=[Message.user("hi")])

        assert params.max_tokens is None
        assert params.temperature is None
        assert params.top_p is None
        assert params.n is None
        assert params.functions == []
        assert params.json_mode is False

    @pytest.mark.parametrize(
        "field,value",
        [("temperature", 2.5), ("top_p", 1.5), ("max_tokens", 0), ("n", 0)],
    )
    def test_rejects_out_of_range(self, field: str, value: float) -> None:
        """Rejects values outside their range."""
        with pytest.raises(ValidationError):
            CompleteParams(messages=[], **{field: value})


class TestCompleteResponse:
    """Tests for CompleteResponse."""

    def test_frozen(self) -> None:
        """Responses are immutable."""
        response = CompleteResponse(
            messages=[Message.assistant("ok")],
            metadata=CompletionMetadata(model_name="gpt-4o"),
        )

        with pytest.raises(ValidationError):
            response.usage = None
