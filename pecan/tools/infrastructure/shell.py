"""ShellTool — runs a program without a shell, after a security policy check."""

import asyncio
import shlex
from typing import Any, Protocol

from pecan.tools.domain.errors import InvalidToolArgumentsError, ToolExecutionError
from pecan.tools.infrastructure.arguments import require_object, require_str


class CommandGuard(Protocol):
    """Checks a command line against the current security policy.

    Raises SecurityPolicyViolationError when the command must not run.
    """

    async def check_command(self, command: str) -> None: ...


class ShellTool:
    """Executes `command` (plus optional `args`) as a subprocess.

    The guard is consulted on every call, so a command approved by a human is
    still refused when policy blocks it.
    """

    name = "shell"
    description = "Executes a shell command."
    parameters: dict[str, Any] = {
        "type": "object",
        "properties": {
            "command": {"type": "string", "description": "The command to execute."},
            "args": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Arguments for the command.",
            },
        },
        "required": ["command"],
    }

    def __init__(self, guard: CommandGuard, timeout_seconds: float = 120.0) -> None:
        self._guard = guard
        self._timeout_seconds = timeout_seconds

    async def call(self, arguments: Any) -> dict[str, Any]:
        args = require_object(self.name, arguments)
        command = require_str(self.name, args, "command")
        argv = _build_argv(command=command, extra=args.get("args"))

        await self._guard.check_command(shlex.join(argv))

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ToolExecutionError(name=self.name, reason=str(exc)) from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout_seconds
            )
        except TimeoutError as exc:
            process.kill()
            await process.wait()
            raise ToolExecutionError(
                name=self.name,
                reason=f"timed out after {self._timeout_seconds:g}s",
            ) from exc

        return {
            "status": "success" if process.returncode == 0 else "error",
            "stdout": stdout.decode("utf-8", errors="replace"),
            "stderr": stderr.decode("utf-8", errors="replace"),
            "exit_code": process.returncode,
        }


def _build_argv(command: str, extra: Any) -> list[str]:
    try:
        argv = shlex.split(command)
    except ValueError as exc:
        raise InvalidToolArgumentsError(name=ShellTool.name, reason=str(exc)) from exc
    if not argv:
        raise InvalidToolArgumentsError(name=ShellTool.name, reason="empty command")
    if extra is not None:
        if not isinstance(extra, list) or not all(isinstance(a, str) for a in extra):
            raise InvalidToolArgumentsError(
                name=ShellTool.name, reason="'args' must be a list of strings"
            )
        argv.extend(extra)
    return argv
