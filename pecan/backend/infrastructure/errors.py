"""Error types raised by backend infrastructure."""

from pecan.core.errors import PecanError


class BackendError(PecanError):
    """Raised when a backend request fails in transport or its reply is unparseable."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to complete chat request: {reason}", retriable=True)


class BackendTypeNotSupportedError(PecanError):
    """Raised when a model config names an unknown provider."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(
            f"Failed to create backend: unsupported provider '{provider}'"
        )


class ModelNotFoundError(PecanError):
    """Raised when switching to a model name that is not configured."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Failed to switch backend: model '{name}' not found")
