"""Error types raised by the memory store."""

from pecan.core.errors import PecanError


class MemoryIOError(PecanError):
    """Raised when the op log or index cannot be read or written."""

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(f"Failed to {action}: {reason}")


class IndexCorruptionError(PecanError):
    """Raised at open when a log line cannot be decoded into an op."""

    def __init__(self, log_path: str, line_number: int, reason: str) -> None:
        self.log_path = log_path
        self.line_number = line_number
        super().__init__(
            f"Failed to rebuild memory index: {log_path}:{line_number}: {reason}"
        )
