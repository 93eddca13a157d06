"""FakeAgentObserver — records agent façade events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MemoryFailedEvent:
    action: str
    reason: str


@dataclass(frozen=True)
class TaskFailedEvent:
    task_id: str
    reason: str


class FakeAgentObserver:
    """Records all agent observer events. Satisfies AgentObserver structurally."""

    def __init__(self) -> None:
        self.recalled: list[int] = []
        self.committed: list[str] = []
        self.memory_failures: list[MemoryFailedEvent] = []
        self.switches: list[tuple[str, str]] = []
        self.queued: list[str] = []
        self.started: list[str] = []
        self.completed: list[str] = []
        self.failed: list[TaskFailedEvent] = []
        self.suspended: list[tuple[str, str | None]] = []
        self.requeued: list[str] = []
        self.pauses = 0
        self.blocked: list[str] = []
        self.finished: list[int] = []

    def memory_recalled(self, record_count: int) -> None:
        self.recalled.append(record_count)

    def memory_committed(self, record_id: str) -> None:
        self.committed.append(record_id)

    def memory_failed(self, action: str, reason: str) -> None:
        self.memory_failures.append(MemoryFailedEvent(action=action, reason=reason))

    def backend_switched(self, name: str, provider: str) -> None:
        self.switches.append((name, provider))

    def task_queued(self, task_id: str, description: str) -> None:
        self.queued.append(task_id)

    def task_started(self, task_id: str, description: str) -> None:
        self.started.append(task_id)

    def task_completed(self, task_id: str) -> None:
        self.completed.append(task_id)

    def task_failed(self, task_id: str, reason: str) -> None:
        self.failed.append(TaskFailedEvent(task_id=task_id, reason=reason))

    def task_suspended(self, task_id: str, tool_name: str | None) -> None:
        self.suspended.append((task_id, tool_name))

    def task_requeued(self, task_id: str) -> None:
        self.requeued.append(task_id)

    def autonomous_loop_paused(self) -> None:
        self.pauses += 1

    def autonomous_loop_blocked(self, tool_name: str) -> None:
        self.blocked.append(tool_name)

    def autonomous_loop_finished(self, processed_count: int) -> None:
        self.finished.append(processed_count)
