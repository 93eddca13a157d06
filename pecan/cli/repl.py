"""ChatRepl — interactive chat loop with slash commands and approval prompts."""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import TypeAlias

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pecan.agent.application.agent import AgentCore
from pecan.core.errors import PecanError
from pecan.engine.domain.result import TurnOutcome, TurnResult
from pecan.engine.domain.status import StatusKind
from pecan.observability.log_buffer import LogBuffer
from pecan.tasks.domain.task import TaskStatus

_DEFAULT_LOG_LINES = 20
_APPROVAL_PROMPT = escape("Approve? [y]es / [a]lways / [n]o: ")

_HELP = [
    ("/model <name>", "Switch to a configured model"),
    ("/models", "List configured models"),
    ("/clear", "Clear the conversation"),
    ("/task <description>", "Queue an autonomous task"),
    ("/run", "Run queued tasks"),
    ("/pause", "Pause autonomous mode"),
    ("/resume", "Resume autonomous mode"),
    ("/tasks", "List tasks"),
    ("/logs [n]", "Show recent log lines"),
    ("/status", "Show agent status"),
    ("/help", "Show this help"),
    ("/quit", "Exit"),
]

_TASK_STYLES = {
    TaskStatus.PENDING: "yellow",
    TaskStatus.IN_PROGRESS: "cyan",
    TaskStatus.COMPLETED: "green",
    TaskStatus.FAILED: "red",
}

InputFn: TypeAlias = Callable[[str], Awaitable[str]]


class ChatRepl:
    """Reads lines, dispatches slash commands, and renders turn results.

    Project errors are printed as `Error: ...` lines and the loop carries on.
    """

    def __init__(
        self,
        agent: AgentCore,
        console: Console,
        log_buffer: LogBuffer,
        read_line: InputFn | None = None,
    ) -> None:
        self._agent = agent
        self._console = console
        self._log_buffer = log_buffer
        self._read_line = read_line or self._console_input

    async def _console_input(self, prompt: str) -> str:
        return await asyncio.to_thread(self._console.input, prompt)

    async def run(self) -> None:
        self._console.print(
            "[bold green]Pecan[/] ready. Type [bold]/help[/] for commands."
        )
        while True:
            try:
                line = await self._read_line("[bold cyan]>[/] ")
            except EOFError:
                break
            line = line.strip()
            if not line:
                continue
            try:
                if not await self.handle(line):
                    break
            except PecanError as exc:
                self._console.print(f"[red]Error: {escape(str(exc))}[/]")
        self._console.print("Goodbye.")

    async def handle(self, line: str) -> bool:
        """Process one input line; return False when the user asked to quit."""
        if not line.startswith("/"):
            result = await self._agent.chat(line)
            await self._render(result)
            return True

        command, _, argument = line.partition(" ")
        argument = argument.strip()
        match command:
            case "/quit" | "/exit":
                return False
            case "/help":
                self._print_help()
            case "/model":
                await self._switch_model(argument)
            case "/models":
                await self._print_models()
            case "/clear":
                await self._agent.clear()
                self._console.print("Conversation cleared.")
            case "/task":
                await self._queue_task(argument)
            case "/run":
                await self._run_tasks()
            case "/pause":
                self._agent.pause()
                self._console.print("Autonomous mode paused.")
            case "/resume":
                self._agent.resume()
                self._console.print("Autonomous mode resumed.")
            case "/tasks":
                await self._print_tasks()
            case "/logs":
                self._print_logs(argument)
            case "/status":
                await self._print_status()
            case _:
                self._console.print(f"Unknown command: {escape(command)}. Type /help.")
        return True

    # ------------------------------------------------------------------
    # Turn rendering and approvals
    # ------------------------------------------------------------------

    async def _render(self, result: TurnResult) -> None:
        while result.pending is not None and result.outcome != TurnOutcome.COMPLETED:
            result = await self._ask_approval(result)
        if result.outcome != TurnOutcome.COMPLETED:
            return
        if result.output:
            self._console.print(result.output, markup=False)
        else:
            self._console.print("[dim](no response)[/]")

    async def _ask_approval(self, result: TurnResult) -> TurnResult:
        pending = result.pending
        if pending is None:
            return result
        arguments = escape(json.dumps(pending.arguments))
        self._console.print(
            f"[yellow]Tool [bold]{escape(pending.tool_name)}[/bold] wants to run"
            f" with {arguments}[/]",
            highlight=False,
        )
        while True:
            answer = await self._read_line(_APPROVAL_PROMPT)
            match answer.strip().lower():
                case "y" | "yes":
                    return await self._agent.approve()
                case "a" | "always":
                    return await self._agent.approve_always()
                case "n" | "no":
                    reason = await self._read_line("Reason (optional): ")
                    return await self._agent.reject(reason.strip())
                case _:
                    self._console.print("Please answer y, a or n.")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _print_help(self) -> None:
        table = Table(show_header=False, box=None)
        for usage, description in _HELP:
            table.add_row(f"[bold]{escape(usage)}[/]", description)
        self._console.print(table)

    async def _switch_model(self, name: str) -> None:
        if not name:
            self._console.print("Usage: /model <name>")
            return
        await self._agent.switch_backend(name)
        self._console.print(f"Switched to model: [bold]{name}[/]")

    async def _print_models(self) -> None:
        current = await self._agent.current_model()
        table = Table("", "Name", "Provider", "Description")
        for name, model in (await self._agent.models()).items():
            marker = "*" if name == current else ""
            table.add_row(marker, name, model.provider, model.description or "")
        self._console.print(table)

    async def _queue_task(self, description: str) -> None:
        if not description:
            self._console.print("Usage: /task <description>")
            return
        task_id = await self._agent.push_autonomous_task(description)
        self._console.print(f"Queued task {task_id[:8]}.")

    async def _run_tasks(self) -> None:
        if self._agent.paused:
            self._console.print("Autonomous mode is paused. Use /resume first.")
            return
        processed = await self._agent.run_autonomous_loop()
        status = await self._agent.current_status()
        if status.kind == StatusKind.WAITING_FOR_APPROVAL and status.pending:
            if not processed:
                self._console.print("Resolve the pending approval to run tasks.")
            await self._render(
                TurnResult(outcome=TurnOutcome.DEFERRED, pending=status.pending)
            )
        elif not processed:
            self._console.print("No pending tasks.")
        await self._print_tasks()

    async def _print_tasks(self) -> None:
        tasks = await self._agent.tasks()
        if not tasks:
            self._console.print("No tasks.")
            return
        table = Table("ID", "Status", "Description")
        for task in tasks:
            style = _TASK_STYLES[task.status]
            status = task.status.value
            if task.failure_reason:
                status = f"{status}: {task.failure_reason}"
            table.add_row(task.id[:8], f"[{style}]{status}[/]", task.description)
        self._console.print(table)

    def _print_logs(self, argument: str) -> None:
        try:
            count = int(argument) if argument else _DEFAULT_LOG_LINES
        except ValueError:
            self._console.print(escape("Usage: /logs [n]"))
            return
        lines = self._log_buffer.lines(last=count)
        if not lines:
            self._console.print("[dim]No log lines yet.[/]")
        for line in lines:
            self._console.print(line, markup=False, highlight=False)

    async def _print_status(self) -> None:
        status = await self._agent.current_status()
        model = await self._agent.current_model()
        paused = " (autonomous mode paused)" if self._agent.paused else ""
        self._console.print(
            f"Model: [bold]{model}[/]  Status: {escape(status.describe())}{paused}"
        )
