"""BatchCursor — resumable position within one assistant tool-call batch."""

from pydantic import BaseModel, Field

from pecan.conversation.domain.message import ToolCall


class BatchCursor(BaseModel, frozen=True):
    """Which call of an assistant batch runs next.

    Suspending for approval stores the cursor; resuming restores it, so batch
    execution never needs a re-entrant call stack.
    """

    calls: tuple[ToolCall, ...]
    next_index: int = Field(default=0, ge=0)

    @property
    def exhausted(self) -> bool:
        return self.next_index >= len(self.calls)

    @property
    def current(self) -> ToolCall:
        return self.calls[self.next_index]

    def advance(self) -> "BatchCursor":
        return self.model_copy(update={"next_index": self.next_index + 1})
