"""TurnObserver port — domain events emitted while executing a turn."""

from typing import Protocol


class TurnObserver(Protocol):
    """Observer port for turn engine events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def turn_step_started(self, message_count: int, tool_count: int) -> None: ...

    def turn_deferred(self, unsatisfied_calls: int) -> None: ...

    def turn_completed(self, output_length: int) -> None: ...

    def turn_failed(self, reason: str) -> None: ...

    def tool_execution_started(self, tool_name: str, call_id: str) -> None: ...

    def tool_execution_completed(
        self, tool_name: str, call_id: str, duration_ms: int
    ) -> None: ...

    def tool_execution_failed(
        self, tool_name: str, call_id: str, reason: str
    ) -> None: ...

    def approval_requested(self, tool_name: str, call_id: str) -> None: ...

    def approval_resolved(
        self, tool_name: str, call_id: str, decision: str
    ) -> None: ...
