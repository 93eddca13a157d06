"""TurnResult value object — how a turn ended."""

from enum import StrEnum

from pydantic import BaseModel

from pecan.approval.domain.pending import PendingApproval


class TurnOutcome(StrEnum):
    COMPLETED = "completed"
    AWAITING_APPROVAL = "awaiting_approval"
    # The last assistant batch still lacks tool results; the backend was not called.
    DEFERRED = "deferred"


class TurnResult(BaseModel, frozen=True):
    """output is the final assistant text; empty when the backend said nothing."""

    outcome: TurnOutcome
    output: str = ""
    pending: PendingApproval | None = None

    @property
    def awaiting_approval(self) -> bool:
        return self.outcome == TurnOutcome.AWAITING_APPROVAL

    @classmethod
    def completed(cls, output: str) -> "TurnResult":
        return cls(outcome=TurnOutcome.COMPLETED, output=output)

    @classmethod
    def awaiting(cls, pending: PendingApproval) -> "TurnResult":
        return cls(outcome=TurnOutcome.AWAITING_APPROVAL, pending=pending)

    @classmethod
    def deferred(cls, pending: PendingApproval | None) -> "TurnResult":
        return cls(outcome=TurnOutcome.DEFERRED, pending=pending)
