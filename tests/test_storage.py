"""
Tests for the SQLite message store.

Test plan:
- save / find_by_id, unknown id → None
- duplicate id rejected
- update persists tx_hash, status, block_number, confirmed_at
- find_pending_with_reference: only pending with tx_hash, oldest first
- file-backed store survives reopening, parent directory created
"""

import sqlite3
from dataclasses import replace
from pathlib import Path

import pytest

from hashnote.integrity import content_hash
from hashnote.messages.model import Message, MessageStatus
from hashnote.messages.storage import MessageStore, SqliteMessageStore


def make_message(id: str, created_at: str = "2026-03-01T12:00:00+00:00", **kwargs) -> Message:
    text = f"text of {id}"
    return Message(id=id, text=text, msg_hash=content_hash(text), created_at=created_at, **kwargs)


@pytest.fixture
def store() -> SqliteMessageStore:
    return SqliteMessageStore(":memory:")


class TestSaveAndFind:
    def test_satisfies_protocol(self, store: SqliteMessageStore) -> None:
        assert isinstance(store, MessageStore)

    def test_roundtrip(self, store: SqliteMessageStore) -> None:
        message = make_message("a", tx_hash="0x" + "01" * 32)
        store.save(message)
        assert store.find_by_id("a") == message

    def test_unknown_id(self, store: SqliteMessageStore) -> None:
        assert store.find_by_id("missing") is None

    def test_duplicate_id_rejected(self, store: SqliteMessageStore) -> None:
        store.save(make_message("a"))
        with pytest.raises(sqlite3.IntegrityError):
            store.save(make_message("a"))


class TestUpdate:
    def test_update_to_confirmed(self, store: SqliteMessageStore) -> None:
        message = make_message("a", tx_hash="0x" + "01" * 32)
        store.save(message)

        confirmed = message.with_status(
            MessageStatus.CONFIRMED,
            block_number=4_242_424,
            confirmed_at="2026-03-01T12:00:08+00:00",
        )
        store.update(confirmed)

        loaded = store.find_by_id("a")
        assert loaded == confirmed

    def test_update_tx_hash(self, store: SqliteMessageStore) -> None:
        message = make_message("a")
        store.save(message)
        store.update(replace(message, tx_hash="0x" + "02" * 32))
        loaded = store.find_by_id("a")
        assert loaded is not None
        assert loaded.tx_hash == "0x" + "02" * 32

    def test_update_does_not_touch_text(self, store: SqliteMessageStore) -> None:
        message = make_message("a", tx_hash="0x" + "01" * 32)
        store.save(message)
        store.update(message.with_status(MessageStatus.FAILED))
        loaded = store.find_by_id("a")
        assert loaded is not None
        assert loaded.text == message.text
        assert loaded.created_at == message.created_at


class TestConditionalUpdate:
    def test_applies_when_status_matches(self, store: SqliteMessageStore) -> None:
        message = make_message("a", tx_hash="0x" + "01" * 32)
        store.save(message)

        failed = message.with_status(MessageStatus.FAILED)
        assert store.update(failed, expected_status=MessageStatus.PENDING)
        assert store.find_by_id("a") == failed

    def test_skipped_when_status_moved_on(self, store: SqliteMessageStore) -> None:
        message = make_message("a", tx_hash="0x" + "01" * 32)
        store.save(message)
        first = message.with_status(
            MessageStatus.CONFIRMED, block_number=1, confirmed_at="2026-03-01T12:00:08+00:00"
        )
        second = message.with_status(
            MessageStatus.CONFIRMED, block_number=2, confirmed_at="2026-03-01T12:00:09+00:00"
        )

        assert store.update(first, expected_status=MessageStatus.PENDING)
        assert not store.update(second, expected_status=MessageStatus.PENDING)
        assert store.find_by_id("a") == first

    def test_unknown_id_reports_no_write(self, store: SqliteMessageStore) -> None:
        assert not store.update(make_message("ghost"))


class TestFindPending:
    def test_filters_and_orders(self, store: SqliteMessageStore) -> None:
        tx = "0x" + "01" * 32
        store.save(make_message("late", "2026-03-01T12:00:05+00:00", tx_hash=tx))
        store.save(make_message("early", "2026-03-01T12:00:01+00:00", tx_hash=tx))
        store.save(make_message("no-tx", "2026-03-01T12:00:00+00:00"))
        store.save(make_message("done", "2026-03-01T12:00:00+00:00", tx_hash=tx, status=MessageStatus.FAILED))

        assert [m.id for m in store.find_pending_with_reference()] == ["early", "late"]

    def test_empty(self, store: SqliteMessageStore) -> None:
        assert store.find_pending_with_reference() == []


class TestFileBacked:
    def test_persists_across_instances(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "dir" / "app.sqlite"
        SqliteMessageStore(db_path).save(make_message("a"))

        assert db_path.exists()
        reopened = SqliteMessageStore(db_path)
        loaded = reopened.find_by_id("a")
        assert loaded is not None
        assert loaded.id == "a"
