"""MemoryRecord and the MemoryOp entries of the append-only log."""

from datetime import datetime
from typing import Annotated, Literal, TypeAlias

from pydantic import BaseModel, Field


class MemoryRecord(BaseModel, frozen=True):
    id: str
    content: str
    summary: str
    timestamp: datetime


class AddOp(BaseModel, frozen=True):
    """Upsert a record by id."""

    op: Literal["add"] = "add"
    id: str
    content: str
    summary: str
    timestamp: datetime

    @classmethod
    def of(cls, record: MemoryRecord) -> "AddOp":
        return cls(
            id=record.id,
            content=record.content,
            summary=record.summary,
            timestamp=record.timestamp,
        )

    def to_record(self) -> MemoryRecord:
        return MemoryRecord(
            id=self.id,
            content=self.content,
            summary=self.summary,
            timestamp=self.timestamp,
        )


class ForgetOp(BaseModel, frozen=True):
    """Delete a record by id; forgetting an unknown id is a no-op."""

    op: Literal["forget"] = "forget"
    id: str


MemoryOp: TypeAlias = Annotated[AddOp | ForgetOp, Field(discriminator="op")]
