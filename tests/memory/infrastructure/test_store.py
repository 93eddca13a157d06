"""Tests for SqliteMemoryStore — op log, FTS index, replay and compaction."""

import json
from pathlib import Path

import pytest

from pecan.memory.infrastructure.errors import IndexCorruptionError, MemoryIOError
from pecan.memory.infrastructure.store import SqliteMemoryStore
from tests.memory.fake_observer import FakeMemoryObserver


def _open(base: Path) -> tuple[SqliteMemoryStore, FakeMemoryObserver]:
    observer = FakeMemoryObserver()
    return SqliteMemoryStore(base_path=base, observer=observer), observer


def _contents(store: SqliteMemoryStore) -> list[str]:
    return [record.content for record in store.records()]


@pytest.fixture
def base(tmp_path: Path) -> Path:
    return tmp_path / "memory"


class TestAddAndSearch:
    def test_added_record_is_searchable(self, base: Path) -> None:
        with _open(base)[0] as store:
            record_id = store.add("the quick brown fox", "fox fact")

            results = store.search("fox", limit=5)

        assert [r.id for r in results] == [record_id]
        assert results[0].summary == "fox fact"

    def test_summary_is_indexed(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("body text", "zebra")

            assert len(store.search("zebra", limit=5)) == 1

    def test_terms_are_anded(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("apples and pears", "fruit")
            store.add("apples only", "fruit")

            results = store.search("apples pears", limit=5)

        assert [r.content for r in results] == ["apples and pears"]

    def test_limit_caps_results(self, base: Path) -> None:
        with _open(base)[0] as store:
            for i in range(5):
                store.add(f"note number {i}", "note")

            assert len(store.search("note", limit=2)) == 2

    def test_zero_limit_returns_nothing(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("note", "note")

            assert store.search("note", limit=0) == []

    def test_empty_query_lists_in_insertion_order(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("first", "a")
            store.add("second", "b")
            store.add("third", "c")

            results = store.search("   ", limit=2)

        assert [r.content for r in results] == ["first", "second"]

    @pytest.mark.parametrize(
        "query", ['"', "AND", "OR NOT", "col:value", "a*", "(unbalanced", 'quote"d']
    )
    def test_special_characters_do_not_break_search(
        self, base: Path, query: str
    ) -> None:
        with _open(base)[0] as store:
            store.add("plain content", "plain")

            store.search(query, limit=5)

    def test_quoted_term_matches_literally(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("use AND carefully", "operators")

            assert len(store.search('"AND"', limit=5)) == 1

    def test_observer_sees_add_and_search(self, base: Path) -> None:
        store, observer = _open(base)
        with store:
            record_id = store.add("content", "summary")
            store.search("content", limit=5)

        assert observer.added == [record_id]
        assert observer.searches == [("content", 1)]


class TestForget:
    def test_forgotten_record_is_excluded(self, base: Path) -> None:
        with _open(base)[0] as store:
            keep = store.add("keep this note", "keep")
            drop = store.add("drop this note", "drop")

            store.forget(drop)

            assert [r.id for r in store.search("note", limit=5)] == [keep]

    def test_forget_unknown_id_is_noop(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("note", "n")

            store.forget("does-not-exist")

            assert len(store.records()) == 1

    def test_forget_is_logged(self, base: Path) -> None:
        with _open(base)[0] as store:
            record_id = store.add("note", "n")
            store.forget(record_id)
            log_path = store.log_path

        ops = [json.loads(line) for line in log_path.read_text().splitlines()]
        assert [op["op"] for op in ops] == ["add", "forget"]
        assert ops[1]["id"] == record_id


class TestReplay:
    def test_reopen_restores_records(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("alpha note", "a")
            forgotten = store.add("beta note", "b")
            store.forget(forgotten)
            before = store.records()

        with _open(base)[0] as reopened:
            after = reopened.records()

        assert after == before

    def test_replay_is_idempotent(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("alpha", "a")
            store.add("beta", "b")

        with _open(base)[0] as first:
            once = first.records()
        with _open(base)[0] as second:
            twice = second.records()

        assert once == twice

    def test_deleted_index_is_rebuilt(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("gamma ray", "g")
            db_path = store.db_path

        db_path.unlink()

        with _open(base)[0] as reopened:
            assert _contents(reopened) == ["gamma ray"]
            assert len(reopened.search("gamma", limit=5)) == 1

    def test_unreadable_index_is_discarded_and_rebuilt(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("delta wave", "delta")
            store.add("epsilon value", "epsilon")
            db_path = store.db_path
        db_path.write_bytes(b"this is not sqlite " * 256)

        reopened, observer = _open(base)
        with reopened:
            assert _contents(reopened) == ["delta wave", "epsilon value"]
            assert len(reopened.search("epsilon", limit=5)) == 1
            reopened.add("zeta", "zeta")

        assert len(observer.discarded) == 1
        assert observer.discarded[0][0] == str(db_path)
        assert observer.rebuilt[0].record_count == 2

    def test_stale_journal_is_removed_with_damaged_index(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("eta", "eta")
            db_path = store.db_path
        db_path.write_bytes(b"\x00garbage" * 512)
        journal = db_path.with_name(db_path.name + "-journal")
        journal.write_bytes(b"\x00junk" * 64)

        with _open(base)[0] as reopened:
            assert _contents(reopened) == ["eta"]

        assert not journal.exists()

    def test_rebuild_event_reports_counts(self, base: Path) -> None:
        with _open(base)[0] as store:
            record_id = store.add("x", "x")
            store.forget(record_id)
            store.add("y", "y")

        reopened, observer = _open(base)
        reopened.close()

        assert observer.rebuilt[0].op_count == 3
        assert observer.rebuilt[0].record_count == 1

    def test_repeated_add_op_upserts_by_id(self, base: Path) -> None:
        log = base.with_name("memory.jsonl")
        op = {
            "op": "add",
            "id": "fixed",
            "content": "v1",
            "summary": "s",
            "timestamp": "2026-01-01T00:00:00+00:00",
        }
        log.write_text(
            json.dumps(op) + "\n" + json.dumps({**op, "content": "v2"}) + "\n",
            encoding="utf-8",
        )

        with _open(base)[0] as store:
            assert _contents(store) == ["v2"]
            assert store.search("v1", limit=5) == []

    def test_blank_lines_are_skipped(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("note", "n")
            log_path = store.log_path
        log_path.write_text(log_path.read_text() + "\n\n", encoding="utf-8")

        with _open(base)[0] as reopened:
            assert len(reopened.records()) == 1


class TestCorruption:
    def test_malformed_line_halts_open(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("good", "g")
            log_path = store.log_path
        with log_path.open("a", encoding="utf-8") as handle:
            handle.write("{not json\n")

        with pytest.raises(IndexCorruptionError) as exc_info:
            _open(base)

        assert exc_info.value.line_number == 2

    def test_unknown_op_is_corruption(self, base: Path) -> None:
        base.with_name("memory.jsonl").write_text(
            json.dumps({"op": "explode", "id": "x"}) + "\n", encoding="utf-8"
        )

        with pytest.raises(IndexCorruptionError):
            _open(base)

    def test_store_recovers_once_log_is_repaired(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("survivor", "s")
            log_path = store.log_path
        good_log = log_path.read_text()
        log_path.write_text(good_log + "garbage\n", encoding="utf-8")

        with pytest.raises(IndexCorruptionError):
            _open(base)
        log_path.write_text(good_log, encoding="utf-8")

        with _open(base)[0] as reopened:
            assert _contents(reopened) == ["survivor"]


class TestCompaction:
    def test_compaction_preserves_record_set(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("one", "1")
            two = store.add("two", "2")
            store.add("three", "3")
            store.forget(two)
            before = store.records()

            count = store.compact()
            log_path = store.log_path

        assert count == 2
        lines = log_path.read_text().splitlines()
        assert len(lines) == 2
        assert all(json.loads(line)["op"] == "add" for line in lines)
        with _open(base)[0] as reopened:
            assert reopened.records() == before

    def test_compaction_removes_temp_file(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("one", "1")
            store.compact()
            log_path = store.log_path

        assert not log_path.with_name(log_path.name + ".tmp").exists()

    def test_store_keeps_working_after_compaction(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.add("one", "1")
            store.compact()
            store.add("two", "2")

        with _open(base)[0] as reopened:
            assert _contents(reopened) == ["one", "two"]


class TestIOErrors:
    def test_unwritable_log_raises_memory_io_error(self, base: Path) -> None:
        with _open(base)[0] as store:
            store.log_path.mkdir()

            with pytest.raises(MemoryIOError, match="add memory"):
                store.add("x", "y")
