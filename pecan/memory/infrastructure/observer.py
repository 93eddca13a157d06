"""Structlog implementation of the MemoryObserver port."""

import structlog


class StructlogMemoryObserver:
    """Delegates memory store events to structlog.

    Satisfies the MemoryObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def memory_index_rebuilt(
        self, log_path: str, op_count: int, record_count: int
    ) -> None:
        self._log.info(
            "memory.index_rebuilt",
            log_path=log_path,
            op_count=op_count,
            record_count=record_count,
        )

    def memory_index_discarded(self, db_path: str, reason: str) -> None:
        self._log.warning("memory.index_discarded", db_path=db_path, reason=reason)

    def memory_record_added(self, record_id: str) -> None:
        self._log.debug("memory.record_added", record_id=record_id)

    def memory_record_forgotten(self, record_id: str) -> None:
        self._log.info("memory.record_forgotten", record_id=record_id)

    def memory_searched(self, query: str, result_count: int) -> None:
        self._log.debug("memory.searched", query=query, result_count=result_count)

    def memory_compacted(self, log_path: str, record_count: int) -> None:
        self._log.info(
            "memory.compacted", log_path=log_path, record_count=record_count
        )
