"""ChatBackend Protocol and its request/response value objects."""

from typing import Any, Protocol

from pydantic import BaseModel

from pecan.conversation.domain.message import Message, ToolCall


class ChatRequest(BaseModel, frozen=True):
    messages: tuple[Message, ...]
    temperature: float | None = None
    max_tokens: int | None = None
    tool_definitions: list[dict[str, Any]] | None = None


class ChatResponse(BaseModel, frozen=True):
    """One completion: text, tool calls, both, or (validly) neither."""

    content: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None

    @property
    def is_empty(self) -> bool:
        return not self.content and not self.tool_calls


class ChatBackend(Protocol):
    """Structural interface satisfied by any model backend.

    Raises BackendError on transport or parse failure. Retries, if any, are the
    implementation's concern.
    """

    @property
    def name(self) -> str: ...

    async def complete(self, request: ChatRequest) -> ChatResponse: ...
