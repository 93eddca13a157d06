"""Top-level PecanConfig aggregate — the root configuration object."""

from typing import TypeAlias

from pydantic import BaseModel, Field

from pecan.config.domain.generation import GenerationConfig
from pecan.config.domain.memory import MemoryConfig
from pecan.config.domain.model import ModelConfig
from pecan.config.domain.tools import ToolsConfig

ModelName: TypeAlias = str

DEFAULT_SYSTEM_PROMPT = (
    "You are Pecan, a helpful AI assistant. You use tools to accomplish tasks."
)


class PecanConfig(BaseModel, frozen=True):
    """Root configuration aggregate for a pecan agent process."""

    default_model: ModelName = Field(min_length=1)
    models: dict[ModelName, ModelConfig] = Field(min_length=1)
    tools: ToolsConfig = ToolsConfig()
    generation: GenerationConfig = GenerationConfig()
    memory: MemoryConfig = MemoryConfig()
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, min_length=1)

    @classmethod
    def default(cls) -> "PecanConfig":
        return cls(
            default_model="mock",
            models={
                "mock": ModelConfig(
                    provider="mock", description="Mock model for testing"
                )
            },
        )
