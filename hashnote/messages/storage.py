"""
Message storage — the durable, shared side of the system.

The anchoring core only needs four capabilities, captured by the
``MessageStore`` protocol:

    - save(message)                    insert a new message
    - find_by_id(id)                   fetch one message or None
    - update(message, expected_status)  overwrite tx_hash/status/block/confirmed_at,
                                       optionally only while the stored status matches
    - find_pending_with_reference()    pending messages holding a tx_hash

``SqliteMessageStore`` is the default implementation. It follows the
usual SQLite patterns:
    - _get_conn() with persistent connection for :memory:
    - _transaction() context manager with commit/rollback
    - _init_schema() via executescript
    - sqlite3.Row row factory
    - WAL mode for file-backed databases

``update`` is last-writer-wins per id unless ``expected_status`` is given,
in which case it is a compare-and-set on the stored status. No
cross-message transactions.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol, runtime_checkable

from hashnote.messages.model import Message, MessageStatus

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS messages (
    id TEXT PRIMARY KEY,
    message TEXT NOT NULL,
    msg_hash TEXT NOT NULL,
    tx_hash TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    block_number INTEGER,
    confirmed_at TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_messages_status
ON messages(status);

CREATE INDEX IF NOT EXISTS idx_messages_msg_hash
ON messages(msg_hash);
"""

_COLUMNS = "id, message, msg_hash, tx_hash, status, block_number, confirmed_at, created_at"


@runtime_checkable
class MessageStore(Protocol):
    """Storage capability required by the anchoring core."""

    def save(self, message: Message) -> None:
        ...

    def find_by_id(self, message_id: str) -> Message | None:
        ...

    def update(
        self,
        message: Message,
        *,
        expected_status: MessageStatus | None = None,
    ) -> bool:
        ...

    def find_pending_with_reference(self) -> list[Message]:
        ...


class SqliteMessageStore:
    """SQLite-backed MessageStore.

    Args:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.
            Parent directories are created for file paths.
    """

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._is_memory = self._db_path == ":memory:"

        if self._is_memory:
            self._persistent_conn: sqlite3.Connection | None = sqlite3.connect(
                ":memory:", check_same_thread=False
            )
            self._persistent_conn.row_factory = sqlite3.Row
        else:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            self._persistent_conn = None

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get a database connection with proper settings."""
        if self._persistent_conn is not None:
            return self._persistent_conn

        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for a database transaction."""
        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            if self._persistent_conn is None:
                conn.close()

    def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        with self._transaction() as conn:
            conn.executescript(_SCHEMA)

    # -----------------------------------------------------------------
    # MessageStore
    # -----------------------------------------------------------------

    def save(self, message: Message) -> None:
        """Insert a new message.

        Raises:
            sqlite3.IntegrityError: If the id already exists.
        """
        with self._transaction() as conn:
            conn.execute(
                f"""
                INSERT INTO messages ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    message.id,
                    message.text,
                    message.msg_hash,
                    message.tx_hash,
                    message.status.value,
                    message.block_number,
                    message.confirmed_at,
                    message.created_at,
                ),
            )

    def find_by_id(self, message_id: str) -> Message | None:
        with self._transaction() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM messages WHERE id = ?",
                (message_id,),
            ).fetchone()
        if row is None:
            return None
        return Message.from_dict(dict(row))

    def update(
        self,
        message: Message,
        *,
        expected_status: MessageStatus | None = None,
    ) -> bool:
        """Overwrite the mutable columns of ``message.id``.

        With ``expected_status`` the write only applies while the stored
        row still has that status (compare-and-set).

        Returns:
            True if a row was written.
        """
        sql = """
            UPDATE messages
            SET tx_hash = ?, status = ?, block_number = ?, confirmed_at = ?
            WHERE id = ?
        """
        params: list[object] = [
            message.tx_hash,
            message.status.value,
            message.block_number,
            message.confirmed_at,
            message.id,
        ]
        if expected_status is not None:
            sql += " AND status = ?"
            params.append(expected_status.value)

        with self._transaction() as conn:
            cursor = conn.execute(sql, params)
            return cursor.rowcount > 0

    def find_pending_with_reference(self) -> list[Message]:
        """Pending messages with a tx_hash, oldest first."""
        with self._transaction() as conn:
            rows = conn.execute(
                f"""
                SELECT {_COLUMNS} FROM messages
                WHERE status = 'pending' AND tx_hash IS NOT NULL
                ORDER BY created_at, id
                """
            ).fetchall()
        return [Message.from_dict(dict(row)) for row in rows]
