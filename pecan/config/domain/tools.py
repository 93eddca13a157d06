"""Tool approval and shell security configuration model."""

from pydantic import BaseModel

from pecan.approval.domain.policy import DEFAULT_BLOCKED_COMMANDS


class ToolsConfig(BaseModel, frozen=True):
    require_approval: bool = True
    allowed_commands: list[str] = []
    blocked_commands: list[str] = list(DEFAULT_BLOCKED_COMMANDS)
    shell_timeout_seconds: float = 120.0
