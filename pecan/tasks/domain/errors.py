"""Error types raised by the task stack."""

from pecan.core.errors import PecanError


class TaskNotFoundError(PecanError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Failed to resolve task: task not found: {task_id}")
