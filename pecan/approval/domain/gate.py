"""ApprovalGate — pending approval slot, session allow-list and policy.

Each field has its own asyncio.Lock. Methods hold one lock at a time and never
across an await that can block, so a tool running outside the engine's locks
can safely call back into check_command().
"""

import asyncio

from pecan.approval.domain.errors import (
    ApprovalAlreadyPendingError,
    NoPendingApprovalError,
)
from pecan.approval.domain.pending import PendingApproval, Suspension
from pecan.approval.domain.policy import ApprovalPolicy


class ApprovalGate:
    def __init__(self, policy: ApprovalPolicy) -> None:
        self._policy = policy
        self._policy_lock = asyncio.Lock()
        self._session_allowed: set[str] = set()
        self._allowed_lock = asyncio.Lock()
        self._suspension: Suspension | None = None
        self._pending_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    async def policy(self) -> ApprovalPolicy:
        async with self._policy_lock:
            return self._policy

    async def update_policy(self, policy: ApprovalPolicy) -> None:
        async with self._policy_lock:
            self._policy = policy

    async def check_command(self, command: str) -> None:
        """Raise SecurityPolicyViolationError if policy forbids the command."""
        async with self._policy_lock:
            commands = self._policy.commands
        commands.check(command)

    async def requires_approval(self, tool_name: str) -> bool:
        """True when policy requires sign-off and the tool is not always-allowed."""
        async with self._policy_lock:
            required = self._policy.require_approval
        if not required:
            return False
        async with self._allowed_lock:
            return tool_name not in self._session_allowed

    # ------------------------------------------------------------------
    # Session allow-list
    # ------------------------------------------------------------------

    async def allow_always(self, tool_name: str) -> None:
        async with self._allowed_lock:
            self._session_allowed.add(tool_name)

    async def session_allowed(self) -> frozenset[str]:
        async with self._allowed_lock:
            return frozenset(self._session_allowed)

    # ------------------------------------------------------------------
    # Pending slot
    # ------------------------------------------------------------------

    async def suspend(self, suspension: Suspension) -> None:
        """
        Park a call awaiting approval.

        Raises:
            ApprovalAlreadyPendingError: if another call is already pending.
        """
        async with self._pending_lock:
            if self._suspension is not None:
                raise ApprovalAlreadyPendingError(
                    call_id=self._suspension.pending.call_id
                )
            self._suspension = suspension

    async def take(self) -> Suspension:
        """
        Consume the pending suspension; exactly one caller can win it.

        Raises:
            NoPendingApprovalError: if nothing is pending.
        """
        async with self._pending_lock:
            suspension = self._suspension
            if suspension is None:
                raise NoPendingApprovalError()
            self._suspension = None
            return suspension

    async def pending(self) -> PendingApproval | None:
        async with self._pending_lock:
            return self._suspension.pending if self._suspension else None

    async def discard(self) -> PendingApproval | None:
        """Drop any pending suspension without resolving it."""
        async with self._pending_lock:
            suspension, self._suspension = self._suspension, None
        return suspension.pending if suspension else None
