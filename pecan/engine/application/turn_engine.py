"""TurnEngine — drives one conversational turn through the backend and tools.

Every shared field (history, tools, generation config, backend, status) has
its own asyncio.Lock. A lock is held only while reading or mutating its field
and is always released before a suspension point: the backend call, a tool
invocation, or the approval gate. No method holds two locks at once, and no
lock is ever held across an await of the backend or a tool. Tools may therefore
call back into the approval gate (the shell tool does) without deadlocking.

Tool results are appended to the history in completion order. Within one
assistant batch the calls run strictly in array order, driven by a BatchCursor
so that a batch interrupted by an approval request resumes exactly where it
stopped.
"""

import asyncio
import json
import time
from typing import Any

from pecan.approval.domain.errors import (
    ApprovalAlreadyPendingError,
    NoPendingApprovalError,
)
from pecan.approval.domain.gate import ApprovalGate
from pecan.approval.domain.pending import PendingApproval, Suspension
from pecan.backend.domain.backend import ChatBackend, ChatRequest, ChatResponse
from pecan.backend.infrastructure.errors import BackendError
from pecan.config.domain.generation import GenerationConfig
from pecan.conversation.domain.batch import BatchCursor
from pecan.conversation.domain.message import Message, ToolCall
from pecan.conversation.domain.state import ConversationState
from pecan.engine.domain.observer import TurnObserver
from pecan.engine.domain.result import TurnResult
from pecan.engine.domain.status import AgentStatus
from pecan.tools.domain.registry import ToolRegistry

REJECTION_ERROR = "User rejected tool execution"


class TurnEngine:
    def __init__(
        self,
        history: ConversationState,
        tools: ToolRegistry,
        gate: ApprovalGate,
        backend: ChatBackend,
        generation: GenerationConfig,
        observer: TurnObserver,
    ) -> None:
        self._history = history
        self._history_lock = asyncio.Lock()
        self._tools = tools
        self._tools_lock = asyncio.Lock()
        self._gate = gate
        self._backend = backend
        self._backend_lock = asyncio.Lock()
        self._generation = generation
        self._generation_lock = asyncio.Lock()
        self._status = AgentStatus.idle()
        self._status_lock = asyncio.Lock()
        self._observer = observer

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    async def status(self) -> AgentStatus:
        async with self._status_lock:
            return self._status

    async def pending(self) -> PendingApproval | None:
        return await self._gate.pending()

    async def _set_status(self, status: AgentStatus) -> None:
        async with self._status_lock:
            self._status = status

    async def messages(self) -> list[Message]:
        async with self._history_lock:
            return self._history.messages

    async def append(self, message: Message) -> None:
        async with self._history_lock:
            self._history.append(message)

    async def backend(self) -> ChatBackend:
        async with self._backend_lock:
            return self._backend

    async def set_backend(self, backend: ChatBackend) -> None:
        async with self._backend_lock:
            self._backend = backend

    async def generation(self) -> GenerationConfig:
        async with self._generation_lock:
            return self._generation

    async def set_generation(self, generation: GenerationConfig) -> None:
        async with self._generation_lock:
            self._generation = generation

    async def tool_names(self) -> list[str]:
        async with self._tools_lock:
            return self._tools.names()

    async def clear(self) -> None:
        """Reset history to the system prompt and drop any pending approval."""
        async with self._history_lock:
            self._history.clear()
        await self._gate.discard()
        await self._set_status(AgentStatus.idle())

    # ------------------------------------------------------------------
    # Turn loop
    # ------------------------------------------------------------------

    async def submit(self, text: str) -> TurnResult:
        """Append a user message and run the turn to completion or suspension."""
        await self.append(Message.user(text))
        return await self.run()

    async def run(self) -> TurnResult:
        """
        Step the conversation until the backend stops asking for tools.

        Raises:
            BackendError: if the backend call fails; status is set to Error.
        """
        while True:
            async with self._history_lock:
                view = self._history.build_request_view()
                unsatisfied = len(self._history.unsatisfied_calls())
            if view.early_return or await self._gate.pending() is not None:
                return await self._defer(unsatisfied_calls=unsatisfied)

            response = await self._request(view.messages)
            if response.is_empty:
                await self._set_status(AgentStatus.idle())
                self._observer.turn_completed(output_length=0)
                return TurnResult.completed("")

            await self.append(
                Message.assistant(
                    response.content, tool_calls=list(response.tool_calls or ())
                )
            )
            if not response.tool_calls:
                content = response.content or ""
                await self._set_status(AgentStatus.idle())
                self._observer.turn_completed(output_length=len(content))
                return TurnResult.completed(content)

            suspended = await self._run_batch(BatchCursor(calls=response.tool_calls))
            if suspended is not None:
                return suspended

    async def _request(self, messages: tuple[Message, ...]) -> ChatResponse:
        async with self._tools_lock:
            definitions = self._tools.definitions()
        async with self._generation_lock:
            generation = self._generation
        async with self._backend_lock:
            backend = self._backend

        await self._set_status(AgentStatus.thinking())
        self._observer.turn_step_started(
            message_count=len(messages), tool_count=len(definitions)
        )
        request = ChatRequest(
            messages=messages,
            temperature=generation.temperature,
            max_tokens=generation.max_tokens,
            tool_definitions=definitions or None,
        )
        try:
            return await backend.complete(request)
        except BackendError as exc:
            await self._set_status(AgentStatus.error(str(exc)))
            self._observer.turn_failed(reason=str(exc))
            raise

    async def _run_batch(self, cursor: BatchCursor) -> TurnResult | None:
        """Execute calls from the cursor on; return a result only when suspended."""
        while not cursor.exhausted:
            call = cursor.current
            if await self._gate.requires_approval(call.name):
                pending = PendingApproval(
                    call_id=call.id, tool_name=call.name, arguments=call.arguments
                )
                try:
                    await self._gate.suspend(Suspension(pending=pending, cursor=cursor))
                except ApprovalAlreadyPendingError as exc:
                    await self._abandon(cursor, reason=str(exc))
                    return await self._defer(unsatisfied_calls=0)
                await self._set_status(AgentStatus.waiting_for_approval(pending))
                self._observer.approval_requested(tool_name=call.name, call_id=call.id)
                return TurnResult.awaiting(pending)
            await self._execute(call)
            cursor = cursor.advance()
        return None

    async def _abandon(self, cursor: BatchCursor, reason: str) -> None:
        """Answer the current call and every later call of the batch with an error."""
        content = json.dumps({"error": reason})
        while not cursor.exhausted:
            await self.append(Message.tool(cursor.current.id, content))
            cursor = cursor.advance()

    async def _defer(self, unsatisfied_calls: int) -> TurnResult:
        """Stop without calling the backend; status follows the pending slot."""
        pending = await self._gate.pending()
        if pending is None:
            await self._set_status(AgentStatus.idle())
        else:
            await self._set_status(AgentStatus.waiting_for_approval(pending))
        self._observer.turn_deferred(unsatisfied_calls=unsatisfied_calls)
        return TurnResult.deferred(pending=pending)

    async def _execute(self, call: ToolCall) -> None:
        content = await self._invoke(call)
        await self.append(Message.tool(call.id, content))

    async def _invoke(self, call: ToolCall) -> str:
        """Run one tool; any failure becomes {"error": ...} content for the model."""
        self._observer.tool_execution_started(tool_name=call.name, call_id=call.id)
        start = time.monotonic()
        try:
            async with self._tools_lock:
                tool = self._tools.get(call.name)
            result = await tool.call(call.arguments)
        except Exception as exc:
            self._observer.tool_execution_failed(
                tool_name=call.name, call_id=call.id, reason=str(exc)
            )
            return json.dumps({"error": str(exc)})

        self._observer.tool_execution_completed(
            tool_name=call.name,
            call_id=call.id,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return _serialise(result)

    # ------------------------------------------------------------------
    # Approval resolution
    # ------------------------------------------------------------------

    async def approve(self) -> TurnResult:
        """
        Execute the pending call, then resume the batch and the turn.

        Raises:
            NoPendingApprovalError: if nothing is pending.
            BackendError: if the resumed turn's backend call fails.
        """
        suspension = await self._gate.take()
        call = suspension.cursor.current
        self._observer.approval_resolved(
            tool_name=call.name, call_id=call.id, decision="approved"
        )
        await self._set_status(AgentStatus.thinking())
        await self._execute(call)
        return await self._resume(suspension.cursor.advance())

    async def approve_always(self, tool_name: str | None = None) -> TurnResult:
        """
        Add a tool (default: the pending one) to the session allow-list, then approve.

        The name is not checked against the registry; an unknown pending tool
        is answered with a tool-not-found error like any other call.

        Raises:
            NoPendingApprovalError: if nothing is pending.
        """
        pending = await self._gate.pending()
        if pending is None:
            raise NoPendingApprovalError()
        await self._gate.allow_always(tool_name or pending.tool_name)
        return await self.approve()

    async def reject(self, reason: str) -> TurnResult:
        """
        Answer the pending call with a rejection error and resume.

        Raises:
            NoPendingApprovalError: if nothing is pending.
        """
        suspension = await self._gate.take()
        call = suspension.cursor.current
        self._observer.approval_resolved(
            tool_name=call.name, call_id=call.id, decision="rejected"
        )
        await self._set_status(AgentStatus.thinking())
        content = json.dumps({"error": REJECTION_ERROR, "reason": reason})
        await self.append(Message.tool(call.id, content))
        return await self._resume(suspension.cursor.advance())

    async def _resume(self, cursor: BatchCursor) -> TurnResult:
        suspended = await self._run_batch(cursor)
        if suspended is not None:
            return suspended
        return await self.run()


def _serialise(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, default=str)
