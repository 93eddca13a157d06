"""Base exception class for all pecan-specific errors."""


class PecanError(Exception):
    """Base class for all pecan errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
