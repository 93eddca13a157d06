"""Message and ToolCall value objects — the units of conversation history."""

from enum import StrEnum
from typing import Any, TypeAlias

from pydantic import BaseModel, Field

JsonValue: TypeAlias = Any


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCall(BaseModel, frozen=True):
    """One structured request from the model to invoke a named tool."""

    id: str = Field(min_length=1)
    name: str
    arguments: JsonValue = Field(default_factory=dict)


class Message(BaseModel, frozen=True):
    """Single role-tagged entry in the conversation history.

    Assistant messages carry content, tool_calls, or both. Tool messages always
    carry the tool_call_id of the call they answer.
    """

    role: Role
    content: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_call_id: str | None = None

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls, content: str | None, tool_calls: list[ToolCall] | None = None
    ) -> "Message":
        return cls(
            role=Role.ASSISTANT,
            content=content,
            tool_calls=tuple(tool_calls) if tool_calls else None,
        )

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> "Message":
        return cls(role=Role.TOOL, content=content, tool_call_id=tool_call_id)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)
