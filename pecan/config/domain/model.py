"""Model backend configuration — one entry per selectable backend."""

from typing import Literal, TypeAlias

from pydantic import BaseModel

ProviderType: TypeAlias = Literal["mock", "openai", "llama.cpp", "litellm"]


class ModelConfig(BaseModel, frozen=True):
    """A named chat backend.

    provider selects the adapter: "openai" and "llama.cpp" talk to an
    OpenAI-compatible server at url, "litellm" passes model_id straight to
    LiteLLM, and "mock" answers every request with a canned reply.
    """

    provider: ProviderType = "openai"
    url: str = ""
    api_key: str | None = None
    model_id: str | None = None
    description: str | None = None
