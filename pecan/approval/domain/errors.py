"""Error types raised by the approval gate."""

from pecan.core.errors import PecanError


class ApprovalAlreadyPendingError(PecanError):
    """Raised when an approval is requested while another is outstanding."""

    def __init__(self, call_id: str) -> None:
        super().__init__(
            f"Failed to request approval: call '{call_id}' is already pending"
        )


class NoPendingApprovalError(PecanError):
    """Raised by approve/reject when no tool call is awaiting approval."""

    def __init__(self) -> None:
        super().__init__("Failed to resolve approval: no tool call is pending")
