"""AgentObserver port — domain events emitted by the agent façade."""

from typing import Protocol


class AgentObserver(Protocol):
    """Observer port for memory recall/commit, model switches and autonomous mode."""

    def memory_recalled(self, record_count: int) -> None: ...

    def memory_committed(self, record_id: str) -> None: ...

    def memory_failed(self, action: str, reason: str) -> None: ...

    def backend_switched(self, name: str, provider: str) -> None: ...

    def task_queued(self, task_id: str, description: str) -> None: ...

    def task_started(self, task_id: str, description: str) -> None: ...

    def task_completed(self, task_id: str) -> None: ...

    def task_failed(self, task_id: str, reason: str) -> None: ...

    def task_suspended(self, task_id: str, tool_name: str | None) -> None: ...

    def task_requeued(self, task_id: str) -> None: ...

    def autonomous_loop_paused(self) -> None: ...

    def autonomous_loop_blocked(self, tool_name: str) -> None: ...

    def autonomous_loop_finished(self, processed_count: int) -> None: ...
