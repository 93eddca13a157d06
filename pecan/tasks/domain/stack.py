"""TaskStack — ordered queue of autonomous tasks."""

import uuid
from datetime import UTC, datetime

from pecan.tasks.domain.errors import TaskNotFoundError
from pecan.tasks.domain.task import Task, TaskStatus

CANCELLED_REASON = "cancelled"


class TaskStack:
    """Tasks in insertion order. pop() is FIFO over pending tasks.

    Not synchronised: the owner serialises access (see AgentCore).
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    def push(self, description: str) -> str:
        task = Task(
            id=str(uuid.uuid4()),
            description=description,
            created_at=datetime.now(UTC),
        )
        self._tasks[task.id] = task
        return task.id

    def pop(self) -> Task | None:
        """Mark the oldest pending task in progress and return it."""
        for task in self._tasks.values():
            if task.status == TaskStatus.PENDING:
                return self.update_status(task.id, TaskStatus.IN_PROGRESS)
        return None

    def update_status(
        self, task_id: str, status: TaskStatus, reason: str | None = None
    ) -> Task:
        """
        Replace a task's status and return the updated task.

        Raises:
            TaskNotFoundError: if task_id is unknown.
        """
        task = self.get(task_id)
        updated = task.model_copy(
            update={
                "status": status,
                "failure_reason": reason if status == TaskStatus.FAILED else None,
            }
        )
        self._tasks[task_id] = updated
        return updated

    def cancel(self, task_id: str) -> Task:
        return self.update_status(task_id, TaskStatus.FAILED, reason=CANCELLED_REASON)

    def clear_completed(self) -> int:
        """Drop completed tasks; pending, in-progress and failed ones stay."""
        completed = [
            task_id
            for task_id, task in self._tasks.items()
            if task.status == TaskStatus.COMPLETED
        ]
        for task_id in completed:
            del self._tasks[task_id]
        return len(completed)

    def get(self, task_id: str) -> Task:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise TaskNotFoundError(task_id=task_id) from None

    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def has_pending(self) -> bool:
        return any(task.status == TaskStatus.PENDING for task in self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)
