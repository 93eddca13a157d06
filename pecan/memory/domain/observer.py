"""MemoryObserver port — domain events emitted by the memory store."""

from typing import Protocol


class MemoryObserver(Protocol):
    """Observer port for memory store events."""

    def memory_index_rebuilt(
        self, log_path: str, op_count: int, record_count: int
    ) -> None: ...

    def memory_record_added(self, record_id: str) -> None: ...

    def memory_record_forgotten(self, record_id: str) -> None: ...

    def memory_searched(self, query: str, result_count: int) -> None: ...

    def memory_index_discarded(self, db_path: str, reason: str) -> None: ...

    def memory_compacted(self, log_path: str, record_count: int) -> None: ...
