"""AgentStatus — the single authoritative status value of an agent."""

from enum import StrEnum

from pydantic import BaseModel

from pecan.approval.domain.pending import PendingApproval


class StatusKind(StrEnum):
    IDLE = "idle"
    THINKING = "thinking"
    WAITING_FOR_APPROVAL = "waiting_for_approval"
    ERROR = "error"


class AgentStatus(BaseModel, frozen=True):
    """Idle | Thinking | WaitingForApproval(pending) | Error(message)."""

    kind: StatusKind
    pending: PendingApproval | None = None
    message: str | None = None

    @classmethod
    def idle(cls) -> "AgentStatus":
        return cls(kind=StatusKind.IDLE)

    @classmethod
    def thinking(cls) -> "AgentStatus":
        return cls(kind=StatusKind.THINKING)

    @classmethod
    def waiting_for_approval(cls, pending: PendingApproval) -> "AgentStatus":
        return cls(kind=StatusKind.WAITING_FOR_APPROVAL, pending=pending)

    @classmethod
    def error(cls, message: str) -> "AgentStatus":
        return cls(kind=StatusKind.ERROR, message=message)

    def describe(self) -> str:
        if self.kind == StatusKind.WAITING_FOR_APPROVAL and self.pending:
            return f"waiting for approval of {self.pending.tool_name}"
        if self.kind == StatusKind.ERROR:
            return f"error: {self.message}"
        return self.kind.value
