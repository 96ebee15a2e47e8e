"""LLM request/response schemas.

Type-safe Pydantic models for LLM interactions.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Role(str, Enum):
    """Message sender roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    FUNCTION = "function"

    def __str__(self) -> str:
        return self.value


class FunctionCall(BaseModel):
    """A call to a function requested by the model."""

    name: str = ""
    arguments: str = ""  # JSON encoded

    def parse_arguments(self) -> Any:
        """Decode the JSON arguments string."""
        return json.loads(self.arguments)

    def set_arguments(self, value: Any) -> None:
        """Encode a value as the JSON arguments string."""
        self.arguments = json.dumps(value)


class FunctionDefinition(BaseModel):
    """A function the model may call."""

    name: str
    description: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel):
    """Single message in a conversation."""

    role: Role
    content: str
    id: str | None = None
    name: str | None = None
    hidden: bool = False
    function_call: FunctionCall | None = None
    finish_reason: str | None = None
    completed: bool = False
    error: str | None = None
    length: int | None = None
    metadata: Any = None
    timestamp: datetime = Field(default_factory=_utcnow)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def function(cls, name: str, content: str) -> Message:
        return cls(role=Role.FUNCTION, content=content, name=name)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_function_call(self) -> bool:
        return self.function_call is not None

    @property
    def is_function(self) -> bool:
        return self.role == Role.FUNCTION

    @property
    def function_name(self) -> str | None:
        """Name of the called function, falling back to the message name."""
        if self.function_call is not None and self.function_call.name:
            return self.function_call.name
        return self.name

    @property
    def is_completed(self) -> bool:
        return self.completed or bool(self.finish_reason)

    def to_wire(self) -> dict[str, Any]:
        """Minimal role/content mapping for serialization."""
        result: dict[str, Any] = {"role": str(self.role), "content": self.content}
        if self.name:
            result["name"] = self.name
        if self.function_call is not None:
            result["function_call"] = self.function_call.model_dump()
        return result


class CompleteParams(BaseModel):
    """LLM completion request envelope."""

    messages: list[Message]
    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    n: int | None = Field(default=None, ge=1)
    stream: bool = False
    functions: list[FunctionDefinition] = Field(default_factory=list)
    json_mode: bool = False


class Usage(BaseModel):
    """Token usage information."""

    unit: str = "tokens"
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class CompletionMetadata(BaseModel):
    """Additional information about a completion."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_name: str
    finish_reason: str | None = None
    completion_id: str | None = None
    latency_ms: int = 0
    processed_at: datetime = Field(default_factory=_utcnow)
    request_tokens: int | None = None


class CompleteResponse(BaseModel):
    """LLM completion response."""

    model_config = ConfigDict(frozen=True)

    messages: list[Message]
    usage: Usage | None = None
    metadata: CompletionMetadata
