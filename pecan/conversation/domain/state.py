"""ConversationState — append-only history and its backend-safe projection."""

from pydantic import BaseModel

from pecan.conversation.domain.message import Message, Role, ToolCall


class RequestView(BaseModel, frozen=True):
    """Validated projection of the history, ready to send to a backend.

    early_return is True when the most recent assistant message still has tool
    calls without results; the backend must not be called in that case.
    """

    messages: tuple[Message, ...]
    early_return: bool


class ConversationState:
    """Ordered message history, mutated only by append and clear.

    Not synchronised: the owner serialises access (see TurnEngine).
    """

    def __init__(self, system_prompt: str) -> None:
        self._initial = Message.system(system_prompt)
        self._messages: list[Message] = [self._initial]

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def clear(self) -> None:
        """Truncate the history back to the initial system message."""
        self._messages = [self._initial]

    @property
    def messages(self) -> list[Message]:
        """Return a shallow copy of the recorded messages."""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def build_request_view(self) -> RequestView:
        """Walk the history and return the messages a backend may legally see.

        Assistant messages with neither content nor tool calls are dropped.
        Each tool call must have a later tool message with a matching
        tool_call_id; if the last assistant message has an unsatisfied call the
        view is flagged with early_return. Unanswered calls of older assistant
        messages are pruned so no batch is ever submitted as resolved while a
        call lacks its result. Tool message content is normalised to a string.
        """
        history = self._messages
        last_assistant = _last_assistant_index(history)
        filtered: list[Message] = []

        for index, message in enumerate(history):
            if message.role == Role.ASSISTANT:
                content = message.content or None
                calls = message.tool_calls or None
                if content is None and calls is None:
                    continue
                if calls is not None:
                    answered = _answered_ids(history[index + 1 :])
                    kept = tuple(call for call in calls if call.id in answered)
                    if len(kept) < len(calls):
                        if index == last_assistant:
                            return RequestView(
                                messages=tuple(filtered), early_return=True
                            )
                        # An abandoned older batch: only answered calls survive.
                        calls = kept or None
                        if content is None and calls is None:
                            continue
                filtered.append(
                    Message(role=Role.ASSISTANT, content=content, tool_calls=calls)
                )
            elif message.role == Role.TOOL:
                filtered.append(
                    Message(
                        role=Role.TOOL,
                        content=message.content or "",
                        tool_call_id=message.tool_call_id,
                    )
                )
            else:
                filtered.append(message)

        return RequestView(messages=tuple(filtered), early_return=False)

    def last_assistant_batch(self) -> tuple[int, tuple[ToolCall, ...]] | None:
        """Return (index, calls) of the latest assistant message with tool calls."""
        for index in range(len(self._messages) - 1, -1, -1):
            message = self._messages[index]
            if message.role == Role.ASSISTANT and message.tool_calls:
                return index, message.tool_calls
        return None

    def unsatisfied_calls(self) -> list[ToolCall]:
        """Calls of the last assistant batch that still lack a tool result, in order."""
        batch = self.last_assistant_batch()
        if batch is None:
            return []
        index, calls = batch
        answered = _answered_ids(self._messages[index + 1 :])
        return [call for call in calls if call.id not in answered]


def _last_assistant_index(history: list[Message]) -> int | None:
    for index in range(len(history) - 1, -1, -1):
        if history[index].role == Role.ASSISTANT:
            return index
    return None


def _answered_ids(later: list[Message]) -> set[str]:
    return {
        message.tool_call_id
        for message in later
        if message.role == Role.TOOL and message.tool_call_id is not None
    }
