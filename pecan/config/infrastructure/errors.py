"""Error types raised by config infrastructure."""

from pathlib import Path

from pecan.core.errors import PecanError


class MissingEnvVarsError(PecanError):
    """Raised when one or more referenced environment variables are not set."""

    def __init__(self, missing_vars: list[str]) -> None:
        self.missing_vars = missing_vars
        var_list = ", ".join(sorted(missing_vars))
        super().__init__(
            f"Failed to load config: missing environment variables: {var_list}"
        )


class ConfigValidationError(PecanError):
    """Raised when the loaded config fails schema or semantic validation."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to validate config: {reason}")


class ConfigLoadError(PecanError):
    """Raised when the config file cannot be read or parsed."""

    def __init__(self, path: Path, reason: str = "file not found") -> None:
        self.path = path
        super().__init__(f"Failed to load config: {reason}: {path}")
