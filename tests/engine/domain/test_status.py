"""Tests for AgentStatus and TurnResult."""

from pecan.approval.domain.pending import PendingApproval
from pecan.engine.domain.result import TurnOutcome, TurnResult
from pecan.engine.domain.status import AgentStatus, StatusKind


def _pending() -> PendingApproval:
    return PendingApproval(call_id="1", tool_name="shell", arguments={})


class TestAgentStatus:
    def test_waiting_carries_pending(self) -> None:
        status = AgentStatus.waiting_for_approval(_pending())

        assert status.kind == StatusKind.WAITING_FOR_APPROVAL
        assert status.describe() == "waiting for approval of shell"

    def test_error_describes_message(self) -> None:
        assert AgentStatus.error("boom").describe() == "error: boom"

    def test_idle_describes_kind(self) -> None:
        assert AgentStatus.idle().describe() == "idle"


class TestTurnResult:
    def test_awaiting_sentinel(self) -> None:
        result = TurnResult.awaiting(_pending())

        assert result.awaiting_approval is True
        assert result.outcome == TurnOutcome.AWAITING_APPROVAL

    def test_completed_is_not_awaiting(self) -> None:
        result = TurnResult.completed("hi")

        assert result.awaiting_approval is False
        assert result.pending is None
