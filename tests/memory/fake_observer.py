"""FakeMemoryObserver — records memory store events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class IndexRebuiltEvent:
    log_path: str
    op_count: int
    record_count: int


class FakeMemoryObserver:
    """Records all memory observer events. Satisfies MemoryObserver structurally."""

    def __init__(self) -> None:
        self.rebuilt: list[IndexRebuiltEvent] = []
        self.added: list[str] = []
        self.forgotten: list[str] = []
        self.searches: list[tuple[str, int]] = []
        self.compactions: list[int] = []
        self.discarded: list[tuple[str, str]] = []

    def memory_index_rebuilt(
        self, log_path: str, op_count: int, record_count: int
    ) -> None:
        self.rebuilt.append(
            IndexRebuiltEvent(
                log_path=log_path, op_count=op_count, record_count=record_count
            )
        )

    def memory_index_discarded(self, db_path: str, reason: str) -> None:
        self.discarded.append((db_path, reason))

    def memory_record_added(self, record_id: str) -> None:
        self.added.append(record_id)

    def memory_record_forgotten(self, record_id: str) -> None:
        self.forgotten.append(record_id)

    def memory_searched(self, query: str, result_count: int) -> None:
        self.searches.append((query, result_count))

    def memory_compacted(self, log_path: str, record_count: int) -> None:
        self.compactions.append(record_count)
