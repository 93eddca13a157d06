"""BackendObserver port — domain events emitted around backend requests."""

from typing import Protocol


class BackendObserver(Protocol):
    def backend_request_started(
        self, backend: str, model: str, message_count: int, tool_count: int
    ) -> None: ...

    def backend_request_completed(
        self, backend: str, model: str, duration_ms: int, tool_call_count: int
    ) -> None: ...

    def backend_request_failed(self, backend: str, model: str, reason: str) -> None: ...
