"""LogBuffer — bounded ring of recent log lines, fed by a structlog processor."""

import threading
from collections import deque
from collections.abc import MutableMapping
from typing import Any

DEFAULT_CAPACITY = 1000

_SKIPPED_KEYS = frozenset({"event", "level", "timestamp"})


class LogBuffer:
    """Keeps the newest `capacity` lines; the oldest line is evicted first.

    Created once by the entrypoint and handed to the structlog configuration.
    Thread-safe, since memory store events are logged from worker threads.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._lines: deque[str] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._lines.maxlen or 0

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    def lines(self, last: int | None = None) -> list[str]:
        """Return buffered lines oldest first, optionally only the last N."""
        with self._lock:
            lines = list(self._lines)
        if last is not None:
            return lines[-last:] if last > 0 else []
        return lines

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def processor(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        """structlog processor: record `LEVEL: message` and pass the event on."""
        level = str(event_dict.get("level", method_name)).upper()
        self.append(f"{level}: {format_message(event_dict)}")
        return event_dict


def format_message(event_dict: MutableMapping[str, Any]) -> str:
    fields = " ".join(
        f"{key}={value}"
        for key, value in event_dict.items()
        if key not in _SKIPPED_KEYS
    )
    event = str(event_dict.get("event", ""))
    return f"{event} {fields}" if fields else event
