"""BackendFactory Protocol — builds a ChatBackend for a named model."""

from typing import Protocol

from pecan.backend.domain.backend import ChatBackend
from pecan.config.domain.model import ModelConfig


class BackendFactory(Protocol):
    """Creates the backend used after a model switch."""

    def create(self, name: str, config: ModelConfig) -> ChatBackend: ...
