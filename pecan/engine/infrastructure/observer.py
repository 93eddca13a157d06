"""Structlog implementation of the TurnObserver port."""

import structlog


class StructlogTurnObserver:
    """Delegates turn engine events to structlog.

    Satisfies the TurnObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def turn_step_started(self, message_count: int, tool_count: int) -> None:
        self._log.info(
            "turn.step_started", message_count=message_count, tool_count=tool_count
        )

    def turn_deferred(self, unsatisfied_calls: int) -> None:
        self._log.info("turn.deferred", unsatisfied_calls=unsatisfied_calls)

    def turn_completed(self, output_length: int) -> None:
        self._log.info("turn.completed", output_length=output_length)

    def turn_failed(self, reason: str) -> None:
        self._log.error("turn.failed", reason=reason)

    def tool_execution_started(self, tool_name: str, call_id: str) -> None:
        self._log.info("tool.execution_started", tool_name=tool_name, call_id=call_id)

    def tool_execution_completed(
        self, tool_name: str, call_id: str, duration_ms: int
    ) -> None:
        self._log.info(
            "tool.execution_completed",
            tool_name=tool_name,
            call_id=call_id,
            duration_ms=duration_ms,
        )

    def tool_execution_failed(self, tool_name: str, call_id: str, reason: str) -> None:
        self._log.warning(
            "tool.execution_failed",
            tool_name=tool_name,
            call_id=call_id,
            reason=reason,
        )

    def approval_requested(self, tool_name: str, call_id: str) -> None:
        self._log.info("approval.requested", tool_name=tool_name, call_id=call_id)

    def approval_resolved(self, tool_name: str, call_id: str, decision: str) -> None:
        self._log.info(
            "approval.resolved",
            tool_name=tool_name,
            call_id=call_id,
            decision=decision,
        )
