"""SqliteMemoryStore — NDJSON op log with a rebuildable SQLite FTS5 index.

<base>.jsonl is the source of truth: one AddOp or ForgetOp per line. <base>.db
is a projection of it, rebuilt from scratch in a single transaction every time
the store is opened, so a stale or damaged index heals on restart.
"""

import os
import sqlite3
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType

from pydantic import TypeAdapter, ValidationError

from pecan.memory.domain.observer import MemoryObserver
from pecan.memory.domain.record import AddOp, ForgetOp, MemoryOp, MemoryRecord
from pecan.memory.infrastructure.errors import IndexCorruptionError, MemoryIOError

_OP_ADAPTER: TypeAdapter[AddOp | ForgetOp] = TypeAdapter(MemoryOp)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS memories (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    content TEXT NOT NULL,
    summary TEXT NOT NULL,
    timestamp TEXT NOT NULL
);
CREATE VIRTUAL TABLE IF NOT EXISTS memories_fts USING fts5(
    content, summary, content='memories', content_rowid='seq'
);
CREATE TRIGGER IF NOT EXISTS memories_ai AFTER INSERT ON memories BEGIN
    INSERT INTO memories_fts(rowid, content, summary)
    VALUES (new.seq, new.content, new.summary);
END;
CREATE TRIGGER IF NOT EXISTS memories_ad AFTER DELETE ON memories BEGIN
    INSERT INTO memories_fts(memories_fts, rowid, content, summary)
    VALUES ('delete', old.seq, old.content, old.summary);
END;
CREATE TRIGGER IF NOT EXISTS memories_au AFTER UPDATE ON memories BEGIN
    INSERT INTO memories_fts(memories_fts, rowid, content, summary)
    VALUES ('delete', old.seq, old.content, old.summary);
    INSERT INTO memories_fts(rowid, content, summary)
    VALUES (new.seq, new.content, new.summary);
END;
"""

_UPSERT = """
INSERT INTO memories (id, content, summary, timestamp) VALUES (?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    content = excluded.content,
    summary = excluded.summary,
    timestamp = excluded.timestamp
"""

_SELECT_ALL = "SELECT id, content, summary, timestamp FROM memories ORDER BY seq"

_SELECT_MATCH = """
SELECT m.id, m.content, m.summary, m.timestamp
FROM memories_fts JOIN memories AS m ON m.seq = memories_fts.rowid
WHERE memories_fts MATCH ?
ORDER BY rank
LIMIT ?
"""


class SqliteMemoryStore:
    """Episodic memory persisted as <base>.jsonl and indexed in <base>.db.

    Safe to call from worker threads: a single lock serialises every use of
    the connection, log appends and compaction.

    Raises IndexCorruptionError from the constructor when the log holds a line
    that is not a valid op; the index transaction is rolled back. An index file
    SQLite cannot read is deleted and rebuilt from the log.
    """

    def __init__(self, base_path: Path, observer: MemoryObserver) -> None:
        base = base_path.expanduser()
        self._log_path = base.with_name(base.name + ".jsonl")
        self._db_path = base.with_name(base.name + ".db")
        self._observer = observer
        self._lock = threading.Lock()

        try:
            base.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise MemoryIOError(action="open memory store", reason=str(exc)) from exc

        ops = self._read_log()
        self._conn, record_count = self._open_index(ops)
        self._observer.memory_index_rebuilt(
            log_path=str(self._log_path),
            op_count=len(ops),
            record_count=record_count,
        )

    @property
    def log_path(self) -> Path:
        return self._log_path

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def _open_index(
        self, ops: list[AddOp | ForgetOp]
    ) -> tuple[sqlite3.Connection, int]:
        try:
            return self._build_index(ops)
        except sqlite3.OperationalError as exc:
            # Locked or busy files are never discarded.
            raise MemoryIOError(action="open memory store", reason=str(exc)) from exc
        except sqlite3.DatabaseError as exc:
            self._observer.memory_index_discarded(
                db_path=str(self._db_path), reason=str(exc)
            )

        try:
            _remove_index_files(self._db_path)
            return self._build_index(ops)
        except (OSError, sqlite3.Error) as exc:
            raise MemoryIOError(action="open memory store", reason=str(exc)) from exc

    def _build_index(
        self, ops: list[AddOp | ForgetOp]
    ) -> tuple[sqlite3.Connection, int]:
        """Connect and replay ops in one transaction; close the connection on error."""
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        try:
            conn.executescript(_SCHEMA)
            with conn:
                conn.execute("DELETE FROM memories")
                for op in ops:
                    _apply(conn, op)
            (record_count,) = conn.execute("SELECT COUNT(*) FROM memories").fetchone()
        except sqlite3.Error:
            conn.close()
            raise
        return conn, record_count

    def _read_log(self) -> list[AddOp | ForgetOp]:
        if not self._log_path.exists():
            return []
        try:
            lines = self._log_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            raise MemoryIOError(action="read memory log", reason=str(exc)) from exc

        ops: list[AddOp | ForgetOp] = []
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                ops.append(_OP_ADAPTER.validate_json(line))
            except ValidationError as exc:
                raise IndexCorruptionError(
                    log_path=str(self._log_path),
                    line_number=line_number,
                    reason=f"{exc.error_count()} validation error(s)",
                ) from exc
        return ops

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def add(self, content: str, summary: str) -> str:
        """Persist a new record and return its id.

        The op is fsynced to the log before the index is touched.
        """
        op = AddOp(
            id=str(uuid.uuid4()),
            content=content,
            summary=summary,
            timestamp=datetime.now(UTC),
        )
        with self._lock:
            try:
                self._append(op)
                with self._conn:
                    _apply(self._conn, op)
            except (OSError, sqlite3.Error) as exc:
                raise MemoryIOError(action="add memory", reason=str(exc)) from exc
        self._observer.memory_record_added(record_id=op.id)
        return op.id

    def forget(self, record_id: str) -> None:
        op = ForgetOp(id=record_id)
        with self._lock:
            try:
                self._append(op)
                with self._conn:
                    _apply(self._conn, op)
            except (OSError, sqlite3.Error) as exc:
                raise MemoryIOError(action="forget memory", reason=str(exc)) from exc
        self._observer.memory_record_forgotten(record_id=record_id)

    def search(self, query: str, limit: int) -> list[MemoryRecord]:
        """Full-text search; every term must match. No terms lists all records."""
        if limit <= 0:
            return []
        match_expr = _match_expression(query)
        with self._lock:
            try:
                if match_expr is None:
                    rows = self._conn.execute(
                        f"{_SELECT_ALL} LIMIT ?", (limit,)
                    ).fetchall()
                else:
                    rows = self._conn.execute(
                        _SELECT_MATCH, (match_expr, limit)
                    ).fetchall()
            except sqlite3.Error as exc:
                raise MemoryIOError(action="search memory", reason=str(exc)) from exc
        records = [_to_record(row) for row in rows]
        self._observer.memory_searched(query=query, result_count=len(records))
        return records

    def records(self) -> list[MemoryRecord]:
        with self._lock:
            try:
                return self._records_locked()
            except sqlite3.Error as exc:
                raise MemoryIOError(action="list memories", reason=str(exc)) from exc

    def compact(self) -> int:
        """Rewrite the log as one AddOp per live record; return the record count."""
        tmp_path = self._log_path.with_name(self._log_path.name + ".tmp")
        with self._lock:
            try:
                records = self._records_locked()
                with tmp_path.open("w", encoding="utf-8") as handle:
                    for record in records:
                        handle.write(AddOp.of(record).model_dump_json() + "\n")
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_path, self._log_path)
            except (OSError, sqlite3.Error) as exc:
                raise MemoryIOError(action="compact memory", reason=str(exc)) from exc
        self._observer.memory_compacted(
            log_path=str(self._log_path), record_count=len(records)
        )
        return len(records)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "SqliteMemoryStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Helpers (caller holds the lock)
    # ------------------------------------------------------------------

    def _append(self, op: AddOp | ForgetOp) -> None:
        with self._log_path.open("a", encoding="utf-8") as handle:
            handle.write(op.model_dump_json() + "\n")
            handle.flush()
            os.fsync(handle.fileno())

    def _records_locked(self) -> list[MemoryRecord]:
        return [_to_record(row) for row in self._conn.execute(_SELECT_ALL)]


def _match_expression(query: str) -> str | None:
    """Quote each whitespace token so FTS5 treats it literally; None if empty."""
    terms = [term.replace('"', "") for term in query.split()]
    quoted = [f'"{term}"' for term in terms if term]
    return " ".join(quoted) if quoted else None


def _to_record(row: tuple[str, str, str, str]) -> MemoryRecord:
    record_id, content, summary, timestamp = row
    return MemoryRecord(
        id=record_id,
        content=content,
        summary=summary,
        timestamp=datetime.fromisoformat(timestamp),
    )


def _apply(conn: sqlite3.Connection, op: AddOp | ForgetOp) -> None:
    match op:
        case AddOp():
            conn.execute(
                _UPSERT, (op.id, op.content, op.summary, op.timestamp.isoformat())
            )
        case ForgetOp():
            conn.execute("DELETE FROM memories WHERE id = ?", (op.id,))


def _remove_index_files(db_path: Path) -> None:
    for suffix in ("", "-journal", "-wal", "-shm"):
        db_path.with_name(db_path.name + suffix).unlink(missing_ok=True)
