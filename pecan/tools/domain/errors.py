"""Error types raised by tools and the tool registry."""

from pecan.core.errors import PecanError


class ToolNotFoundError(PecanError):
    """Raised when a tool call names a tool that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Failed to resolve tool: tool not found: {name}")


class ToolExecutionError(PecanError):
    """Raised by a tool when its invocation fails."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Failed to execute tool '{name}': {reason}")


class InvalidToolArgumentsError(ToolExecutionError):
    """Raised when a tool receives arguments that do not match its schema."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(name=name, reason=f"invalid arguments: {reason}")


class SecurityPolicyViolationError(PecanError):
    """Raised when a shell command is blocked or missing from the allow-list."""

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        super().__init__(f"Failed to run command '{command}': {reason}")
