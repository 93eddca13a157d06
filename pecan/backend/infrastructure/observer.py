"""Structlog implementation of the BackendObserver port."""

import structlog


class StructlogBackendObserver:
    """Delegates backend domain events to structlog.

    Satisfies the BackendObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def backend_request_started(
        self, backend: str, model: str, message_count: int, tool_count: int
    ) -> None:
        self._log.info(
            "backend.request_started",
            backend=backend,
            model=model,
            message_count=message_count,
            tool_count=tool_count,
        )

    def backend_request_completed(
        self, backend: str, model: str, duration_ms: int, tool_call_count: int
    ) -> None:
        self._log.info(
            "backend.request_completed",
            backend=backend,
            model=model,
            duration_ms=duration_ms,
            tool_call_count=tool_call_count,
        )

    def backend_request_failed(self, backend: str, model: str, reason: str) -> None:
        self._log.error(
            "backend.request_failed",
            backend=backend,
            model=model,
            reason=reason,
        )
