"""PendingApproval and Suspension — the state of a turn awaiting sign-off."""

from typing import Any

from pydantic import BaseModel

from pecan.conversation.domain.batch import BatchCursor


class PendingApproval(BaseModel, frozen=True):
    """A tool call held back until a human approves or rejects it."""

    call_id: str
    tool_name: str
    arguments: Any


class Suspension(BaseModel, frozen=True):
    """The pending call plus the batch cursor needed to resume the turn.

    cursor.current is always the pending call.
    """

    pending: PendingApproval
    cursor: BatchCursor
