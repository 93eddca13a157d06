"""Approval and shell-command security policy value objects."""

import os
import shlex

from pydantic import BaseModel, Field

from pecan.tools.domain.errors import SecurityPolicyViolationError

DEFAULT_BLOCKED_COMMANDS: tuple[str, ...] = (
    "rm",
    "sudo",
    "su",
    "dd",
    "mkfs",
    "shutdown",
    "reboot",
)


class CommandPolicy(BaseModel, frozen=True):
    """Allow/block lists for shell-executing tools.

    An entry matches a command line when its words are a prefix of the
    command's words; the program word is compared by basename, so "rm" also
    matches "/bin/rm". Blocked entries take precedence over allowed ones, and a
    non-empty allow-list rejects every command it does not match.
    """

    allowed_commands: tuple[str, ...] = ()
    blocked_commands: tuple[str, ...] = DEFAULT_BLOCKED_COMMANDS

    def check(self, command: str) -> None:
        """
        Raises:
            SecurityPolicyViolationError: if the command must not run.
        """
        words = _split(command)
        if not words:
            raise SecurityPolicyViolationError(command=command, reason="empty command")

        for entry in self.blocked_commands:
            if _matches(entry=entry, words=words):
                raise SecurityPolicyViolationError(
                    command=command,
                    reason=f"'{entry}' is blocked by security policy",
                )

        if self.allowed_commands and not any(
            _matches(entry=entry, words=words) for entry in self.allowed_commands
        ):
            raise SecurityPolicyViolationError(
                command=command,
                reason=f"'{os.path.basename(words[0])}' is not in the allowed commands",
            )


class ApprovalPolicy(BaseModel, frozen=True):
    require_approval: bool = True
    commands: CommandPolicy = Field(default_factory=CommandPolicy)


def _split(command: str) -> list[str]:
    try:
        return shlex.split(command)
    except ValueError:
        return command.split()


def _matches(entry: str, words: list[str]) -> bool:
    entry_words = _split(entry)
    if not entry_words or len(entry_words) > len(words):
        return False
    if os.path.basename(words[0]) != os.path.basename(entry_words[0]):
        return False
    return words[1 : len(entry_words)] == entry_words[1:]
