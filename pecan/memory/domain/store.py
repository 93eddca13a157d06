"""MemoryStore Protocol — the episodic memory port used by the agent."""

from typing import Protocol

from pecan.memory.domain.record import MemoryRecord


class MemoryStore(Protocol):
    """Synchronous store; async callers drive it through asyncio.to_thread.

    Raises MemoryIOError from every operation on storage failure.
    """

    def add(self, content: str, summary: str) -> str: ...

    def forget(self, record_id: str) -> None: ...

    def search(self, query: str, limit: int) -> list[MemoryRecord]: ...

    def records(self) -> list[MemoryRecord]: ...

    def compact(self) -> int: ...

    def close(self) -> None: ...
