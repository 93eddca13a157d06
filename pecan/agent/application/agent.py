"""AgentCore — the façade front ends drive: chat, approvals, models, autonomy."""

import asyncio
from collections.abc import Awaitable

from pydantic import BaseModel

from pecan.agent.domain.observer import AgentObserver
from pecan.backend.domain.factory import BackendFactory
from pecan.backend.infrastructure.errors import BackendError, ModelNotFoundError
from pecan.config.domain.config import PecanConfig
from pecan.config.domain.model import ModelConfig
from pecan.conversation.domain.message import Message
from pecan.engine.application.turn_engine import TurnEngine
from pecan.engine.domain.result import TurnOutcome, TurnResult
from pecan.engine.domain.status import AgentStatus
from pecan.memory.domain.record import MemoryRecord
from pecan.memory.domain.store import MemoryStore
from pecan.memory.infrastructure.errors import MemoryIOError
from pecan.tasks.domain.stack import TaskStack
from pecan.tasks.domain.task import Task, TaskStatus

_SUMMARY_LENGTH = 80
CLEARED_REASON = "conversation cleared"


class _OpenTurn(BaseModel, frozen=True):
    """A turn that has not finished yet, and the task that started it, if any."""

    text: str
    task_id: str | None = None


class AgentCore:
    """Single entry point for front ends.

    Memory recall and commit run in worker threads via asyncio.to_thread.
    Memory failures during a chat are reported to the observer and never abort
    the turn; the conversation itself does not depend on memory.

    A turn suspended for approval stays open until approve/reject finishes it.
    If an autonomous task started that turn, the task is completed (or failed)
    at that point.
    """

    def __init__(
        self,
        config: PecanConfig,
        engine: TurnEngine,
        backend_factory: BackendFactory,
        tasks: TaskStack,
        observer: AgentObserver,
        memory: MemoryStore | None = None,
    ) -> None:
        self._engine = engine
        self._backend_factory = backend_factory
        self._observer = observer
        self._memory = memory
        self._recall_limit = config.memory.recall_limit
        self._models = dict(config.models)
        self._current_model = config.default_model
        self._model_lock = asyncio.Lock()
        self._tasks = tasks
        self._tasks_lock = asyncio.Lock()
        self._open_turn: _OpenTurn | None = None
        self._open_turn_lock = asyncio.Lock()
        # Polled once per autonomous iteration; a plain flag is enough on one loop.
        self._paused = False

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    async def chat(self, text: str) -> TurnResult:
        """
        Run one user message through recall, the turn engine and memory commit.

        Raises:
            BackendError: if the backend fails; status is Error.
        """
        return await self._chat(_OpenTurn(text=text))

    async def approve(self) -> TurnResult:
        return await self._resolve(self._engine.approve())

    async def approve_always(self, tool_name: str | None = None) -> TurnResult:
        return await self._resolve(self._engine.approve_always(tool_name=tool_name))

    async def reject(self, reason: str = "") -> TurnResult:
        return await self._resolve(self._engine.reject(reason=reason))

    async def current_status(self) -> AgentStatus:
        return await self._engine.status()

    async def messages(self) -> list[Message]:
        return await self._engine.messages()

    async def clear(self) -> None:
        """Reset the conversation; a task left mid-turn is marked failed."""
        await self._engine.clear()
        async with self._open_turn_lock:
            turn = self._open_turn
        if turn is not None:
            await self._finish(turn, failure=CLEARED_REASON)

    async def _chat(self, turn: _OpenTurn) -> TurnResult:
        await self._recall(turn.text)
        try:
            result = await self._engine.submit(turn.text)
        except BackendError as exc:
            await self._finish(turn, failure=str(exc))
            raise
        return await self._settle(turn, result)

    async def _resolve(self, resolution: Awaitable[TurnResult]) -> TurnResult:
        async with self._open_turn_lock:
            turn = self._open_turn
        try:
            result = await resolution
        except BackendError as exc:
            if turn is not None:
                await self._finish(turn, failure=str(exc))
            raise
        if turn is None:
            return result
        return await self._settle(turn, result)

    async def _settle(self, turn: _OpenTurn, result: TurnResult) -> TurnResult:
        match result.outcome:
            case TurnOutcome.AWAITING_APPROVAL:
                async with self._open_turn_lock:
                    self._open_turn = turn
            case TurnOutcome.COMPLETED:
                await self._finish(turn, output=result.output)
            case TurnOutcome.DEFERRED:
                await self._requeue(turn)
        return result

    async def _requeue(self, turn: _OpenTurn) -> None:
        """Put a task whose turn never reached the backend back in the queue."""
        if turn.task_id is None:
            return
        async with self._tasks_lock:
            self._tasks.update_status(turn.task_id, TaskStatus.PENDING)
        self._observer.task_requeued(task_id=turn.task_id)

    async def _finish(
        self, turn: _OpenTurn, output: str = "", failure: str | None = None
    ) -> None:
        async with self._open_turn_lock:
            self._open_turn = None

        if turn.task_id is not None:
            async with self._tasks_lock:
                if failure is None:
                    self._tasks.update_status(turn.task_id, TaskStatus.COMPLETED)
                else:
                    self._tasks.update_status(
                        turn.task_id, TaskStatus.FAILED, reason=failure
                    )
            if failure is None:
                self._observer.task_completed(task_id=turn.task_id)
            else:
                self._observer.task_failed(task_id=turn.task_id, reason=failure)

        if failure is None and output:
            await self._commit(text=turn.text, output=output)

    # ------------------------------------------------------------------
    # Memory
    # ------------------------------------------------------------------

    async def _recall(self, text: str) -> None:
        if self._memory is None or self._recall_limit == 0:
            return
        try:
            records = await asyncio.to_thread(
                self._memory.search, text, self._recall_limit
            )
        except MemoryIOError as exc:
            self._observer.memory_failed(action="recall", reason=str(exc))
            return
        self._observer.memory_recalled(record_count=len(records))
        if records:
            await self._engine.append(Message.system(format_recall(records)))

    async def _commit(self, text: str, output: str) -> None:
        if self._memory is None:
            return
        content = f"User: {text}\nAssistant: {output}"
        try:
            record_id = await asyncio.to_thread(
                self._memory.add, content, summarise(text)
            )
        except MemoryIOError as exc:
            self._observer.memory_failed(action="commit", reason=str(exc))
            return
        self._observer.memory_committed(record_id=record_id)

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    async def switch_backend(self, name: str) -> None:
        """
        Replace the active backend with the configured model `name`.

        Raises:
            ModelNotFoundError: if no model has that name.
            BackendTypeNotSupportedError: if its provider is unknown.
        """
        async with self._model_lock:
            config = self._models.get(name)
        if config is None:
            raise ModelNotFoundError(name=name)
        backend = self._backend_factory.create(name=name, config=config)
        await self._engine.set_backend(backend)
        async with self._model_lock:
            self._current_model = name
        self._observer.backend_switched(name=name, provider=config.provider)

    async def models(self) -> dict[str, ModelConfig]:
        async with self._model_lock:
            return dict(self._models)

    async def current_model(self) -> str:
        async with self._model_lock:
            return self._current_model

    # ------------------------------------------------------------------
    # Autonomous mode
    # ------------------------------------------------------------------

    async def push_autonomous_task(self, description: str) -> str:
        async with self._tasks_lock:
            task_id = self._tasks.push(description)
        self._observer.task_queued(task_id=task_id, description=description)
        return task_id

    async def tasks(self) -> list[Task]:
        async with self._tasks_lock:
            return self._tasks.tasks()

    async def cancel_task(self, task_id: str) -> Task:
        """
        Raises:
            TaskNotFoundError: if task_id is unknown.
        """
        async with self._tasks_lock:
            return self._tasks.cancel(task_id)

    async def clear_completed_tasks(self) -> int:
        async with self._tasks_lock:
            return self._tasks.clear_completed()

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    @property
    def paused(self) -> bool:
        return self._paused

    async def run_autonomous_loop(self) -> list[Task]:
        """Work through pending tasks in FIFO order until none remain.

        Stops early when paused or when an approval is outstanding (both
        checked before each task), and when a task's turn suspends for
        approval; that task stays in progress. A task whose turn is deferred
        goes back to pending. A backend failure fails the current task and the
        loop moves on.

        Returns the processed tasks in their state when the loop left them.
        """
        processed: list[Task] = []
        while True:
            if self._paused:
                self._observer.autonomous_loop_paused()
                break
            pending = await self._engine.pending()
            if pending is not None:
                self._observer.autonomous_loop_blocked(tool_name=pending.tool_name)
                break
            async with self._tasks_lock:
                task = self._tasks.pop()
            if task is None:
                break

            self._observer.task_started(task_id=task.id, description=task.description)
            turn = _OpenTurn(text=directive(task.description), task_id=task.id)
            try:
                result = await self._chat(turn)
            except BackendError:
                processed.append(await self._task(task.id))
                continue

            processed.append(await self._task(task.id))
            if result.outcome == TurnOutcome.AWAITING_APPROVAL:
                tool_name = result.pending.tool_name if result.pending else None
                self._observer.task_suspended(task_id=task.id, tool_name=tool_name)
                break
            if result.outcome == TurnOutcome.DEFERRED:
                break

        self._observer.autonomous_loop_finished(processed_count=len(processed))
        return processed

    async def _task(self, task_id: str) -> Task:
        async with self._tasks_lock:
            return self._tasks.get(task_id)


def directive(description: str) -> str:
    """The prompt an autonomous task is run with."""
    return (
        f"Autonomous task: {description}\n"
        "Work on this task using the available tools, then report the outcome."
    )


def summarise(text: str) -> str:
    first_line = text.strip().splitlines()[0] if text.strip() else ""
    if len(first_line) <= _SUMMARY_LENGTH:
        return first_line
    return first_line[: _SUMMARY_LENGTH - 3] + "..."


def format_recall(records: list[MemoryRecord]) -> str:
    lines = ["Relevant memories from earlier conversations:"]
    lines.extend(f"- [{record.summary}] {record.content}" for record in records)
    return "\n".join(lines)
