"""Task value object for autonomous mode."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class Task(BaseModel, frozen=True):
    """failure_reason is set only when status is FAILED."""

    id: str
    description: str
    status: TaskStatus = TaskStatus.PENDING
    failure_reason: str | None = None
    created_at: datetime
