"""Episodic memory configuration model."""

from pathlib import Path

from pydantic import BaseModel, Field


class MemoryConfig(BaseModel, frozen=True):
    """base_path names both artifacts: <base_path>.jsonl and <base_path>.db."""

    enabled: bool = True
    base_path: Path = Path("~/.pecan/memory")
    recall_limit: int = Field(default=3, ge=0)
