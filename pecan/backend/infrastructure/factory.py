"""Backend construction — maps ModelConfig.provider to a ChatBackend."""

from pecan.backend.domain.backend import ChatBackend
from pecan.backend.domain.observer import BackendObserver
from pecan.backend.infrastructure.errors import BackendTypeNotSupportedError
from pecan.backend.infrastructure.litellm import LiteLLMChatBackend
from pecan.backend.infrastructure.mock import MockChatBackend
from pecan.config.domain.model import ModelConfig

_LITELLM_PROVIDERS = frozenset({"openai", "llama.cpp", "litellm"})


def create_chat_backend(
    name: str, config: ModelConfig, observer: BackendObserver
) -> ChatBackend:
    """Return the ChatBackend for the given named model.

    Raises:
        BackendTypeNotSupportedError: if config.provider is not a known provider.
    """
    if config.provider == "mock":
        return MockChatBackend(name=name)
    if config.provider in _LITELLM_PROVIDERS:
        return LiteLLMChatBackend(name=name, config=config, observer=observer)

    raise BackendTypeNotSupportedError(provider=config.provider)


class ChatBackendFactory:
    """BackendFactory that routes every model through create_chat_backend.

    Satisfies the BackendFactory protocol structurally.
    """

    def __init__(self, observer: BackendObserver) -> None:
        self._observer = observer

    def create(self, name: str, config: ModelConfig) -> ChatBackend:
        return create_chat_backend(name=name, config=config, observer=self._observer)
