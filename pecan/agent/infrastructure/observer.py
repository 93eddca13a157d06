"""Structlog implementation of the AgentObserver port."""

import structlog


class StructlogAgentObserver:
    """Delegates agent façade events to structlog.

    Satisfies the AgentObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def memory_recalled(self, record_count: int) -> None:
        self._log.debug("agent.memory_recalled", record_count=record_count)

    def memory_committed(self, record_id: str) -> None:
        self._log.debug("agent.memory_committed", record_id=record_id)

    def memory_failed(self, action: str, reason: str) -> None:
        self._log.error("agent.memory_failed", action=action, reason=reason)

    def backend_switched(self, name: str, provider: str) -> None:
        self._log.info("agent.backend_switched", name=name, provider=provider)

    def task_queued(self, task_id: str, description: str) -> None:
        self._log.info("task.queued", task_id=task_id, description=description)

    def task_started(self, task_id: str, description: str) -> None:
        self._log.info("task.started", task_id=task_id, description=description)

    def task_completed(self, task_id: str) -> None:
        self._log.info("task.completed", task_id=task_id)

    def task_failed(self, task_id: str, reason: str) -> None:
        self._log.error("task.failed", task_id=task_id, reason=reason)

    def task_suspended(self, task_id: str, tool_name: str | None) -> None:
        self._log.info("task.suspended", task_id=task_id, tool_name=tool_name)

    def task_requeued(self, task_id: str) -> None:
        self._log.info("task.requeued", task_id=task_id)

    def autonomous_loop_paused(self) -> None:
        self._log.info("autonomous.paused")

    def autonomous_loop_blocked(self, tool_name: str) -> None:
        self._log.info("autonomous.blocked", tool_name=tool_name)

    def autonomous_loop_finished(self, processed_count: int) -> None:
        self._log.info("autonomous.finished", processed_count=processed_count)
