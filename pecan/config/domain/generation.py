"""Sampling parameters sent with every backend request."""

from pydantic import BaseModel, Field


class GenerationConfig(BaseModel, frozen=True):
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, ge=1)
