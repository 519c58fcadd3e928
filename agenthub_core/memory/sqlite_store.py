"""SQLite message store - persistent ``Msg`` history per session.

Provides SQLite-backed persistence for agent memories:
- Sessions created on demand, with title and archive flag
- Messages stored as ``Msg.to_dict()`` JSON and rebuilt with ``Msg.from_dict()``
- ``SQLiteMemory`` adapts one session to the agent memory interface

Usage:
    from agenthub_core.memory import SQLiteMsgStore, SQLiteMemory

    store = SQLiteMsgStore("data/conversations.db")
    memory = SQLiteMemory(store, session_id="session-123")

    await memory.add(Msg(name="user", content="Hello!"))
    history = await memory.get_memory()
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..message import Msg, MsgRole
from .base import MemoryBase

logger = logging.getLogger(__name__)


class SQLiteMsgStore:
    """SQLite-backed storage for sessions and their messages."""

    def __init__(self, db_path: str = "data/conversations.db"):
        """
        Args:
            db_path: Path to the SQLite database file.
                     Directory will be created if it doesn't exist.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def _connect(self):
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self):
        with self._connect() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    is_archived INTEGER DEFAULT 0,
                    title TEXT DEFAULT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS messages (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL,
                    msg_id TEXT NOT NULL,
                    name TEXT,
                    role TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    FOREIGN KEY (session_id) REFERENCES sessions(id) ON DELETE CASCADE
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_messages_session
                ON messages(session_id, seq)
            """)

            conn.commit()
            logger.debug(f"Message store initialized at {self.db_path}")

    # -----------------------------------------------------------------
    # Sessions
    # -----------------------------------------------------------------

    def get_or_create_session(self, session_id: str) -> Dict[str, Any]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM sessions WHERE id = ?", (session_id,))
            row = cursor.fetchone()
            if row:
                return dict(row)

            cursor.execute("INSERT INTO sessions (id) VALUES (?)", (session_id,))
            conn.commit()
            cursor.execute("SELECT * FROM sessions WHERE id = ?", (session_id,))
            return dict(cursor.fetchone())

    def archive_session(self, session_id: str) -> bool:
        """Mark a session archived; its messages are kept.

        Returns:
            True if an active session was archived
        """
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE sessions SET is_archived = 1 WHERE id = ? AND is_archived = 0",
                (session_id,),
            )
            conn.commit()
            return cursor.rowcount > 0

    def clear_session(self, session_id: str) -> bool:
        """Delete a session and all its messages permanently."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM messages WHERE session_id = ?", (session_id,))
            cursor.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            conn.commit()
            return cursor.rowcount > 0

    def get_active_sessions(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT s.*, COUNT(m.seq) as message_count
                FROM sessions s
                LEFT JOIN messages m ON s.id = m.session_id
                WHERE s.is_archived = 0
                GROUP BY s.id
                ORDER BY s.updated_at DESC
            """)
            return [dict(row) for row in cursor.fetchall()]

    def get_message_count(self, session_id: str) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) as count FROM messages WHERE session_id = ?",
                (session_id,),
            )
            return cursor.fetchone()["count"]

    # -----------------------------------------------------------------
    # Messages
    # -----------------------------------------------------------------

    def add_msgs(self, session_id: str, msgs: List[Msg]) -> None:
        """Append messages to a session (auto-created if needed).

        The first user message with text becomes the session title.
        """
        self.get_or_create_session(session_id)

        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.executemany(
                """
                INSERT INTO messages (session_id, msg_id, name, role, payload)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (session_id, m.id, m.name, m.role.value, json.dumps(m.to_dict(), ensure_ascii=False))
                    for m in msgs
                ],
            )
            cursor.execute(
                "UPDATE sessions SET updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (session_id,),
            )

            for msg in msgs:
                text = msg.get_text_content()
                if msg.role == MsgRole.USER and text:
                    title = text[:100] + "..." if len(text) > 100 else text
                    cursor.execute(
                        "UPDATE sessions SET title = ? WHERE id = ? AND title IS NULL",
                        (title, session_id),
                    )
                    break

            conn.commit()

    def get_msgs(self, session_id: str, limit: Optional[int] = None) -> List[Msg]:
        """Messages of a session, oldest first; ``limit`` keeps the most recent."""
        with self._connect() as conn:
            cursor = conn.cursor()
            if limit is None:
                cursor.execute(
                    "SELECT payload FROM messages WHERE session_id = ? ORDER BY seq ASC",
                    (session_id,),
                )
                rows = cursor.fetchall()
            else:
                cursor.execute(
                    "SELECT payload FROM messages WHERE session_id = ? ORDER BY seq DESC LIMIT ?",
                    (session_id, limit),
                )
                rows = list(reversed(cursor.fetchall()))
        return [Msg.from_dict(json.loads(row["payload"])) for row in rows]

    def delete_msgs(self, session_id: str, msg_ids: List[str]) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.executemany(
                "DELETE FROM messages WHERE session_id = ? AND msg_id = ?",
                [(session_id, msg_id) for msg_id in msg_ids],
            )
            conn.commit()
            return cursor.rowcount

    def get_msg_ids(self, session_id: str) -> List[str]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT msg_id FROM messages WHERE session_id = ? ORDER BY seq ASC",
                (session_id,),
            )
            return [row["msg_id"] for row in cursor.fetchall()]

    def delete_msgs_at(self, session_id: str, positions: List[int]) -> int:
        """Delete messages by their position in the session, oldest first."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT seq FROM messages WHERE session_id = ? ORDER BY seq ASC",
                (session_id,),
            )
            seqs = [row["seq"] for row in cursor.fetchall()]
            invalid = [i for i in positions if not 0 <= i < len(seqs)]
            if invalid:
                raise IndexError(f"Memory indexes {invalid} out of range (size {len(seqs)})")
            cursor.executemany(
                "DELETE FROM messages WHERE seq = ?",
                [(seqs[i],) for i in set(positions)],
            )
            conn.commit()
            return cursor.rowcount


class SQLiteMemory(MemoryBase):
    """Agent memory persisted in one ``SQLiteMsgStore`` session."""

    def __init__(self, store: SQLiteMsgStore, session_id: str, allow_duplicates: bool = False):
        self.store = store
        self.session_id = session_id
        self.allow_duplicates = allow_duplicates
        self.store.get_or_create_session(session_id)

    async def add(self, msgs: Union[Msg, List[Msg], None]) -> None:
        if msgs is None:
            return
        if isinstance(msgs, Msg):
            msgs = [msgs]

        known_ids = set() if self.allow_duplicates else set(self.store.get_msg_ids(self.session_id))
        new_msgs = []
        for msg in msgs:
            if msg is None:
                continue
            if not self.allow_duplicates and msg.id in known_ids:
                logger.debug(f"Skipping duplicate message {msg.id}")
                continue
            new_msgs.append(msg)
            known_ids.add(msg.id)

        if new_msgs:
            self.store.add_msgs(self.session_id, new_msgs)

    async def get_memory(self, limit: Optional[int] = None) -> List[Msg]:
        return self.store.get_msgs(self.session_id, limit)

    async def delete(self, index: Union[int, List[int]]) -> None:
        indexes = [index] if isinstance(index, int) else list(index)
        self.store.delete_msgs_at(self.session_id, indexes)

    async def clear(self) -> None:
        self.store.clear_session(self.session_id)
        self.store.get_or_create_session(self.session_id)

    async def size(self) -> int:
        return self.store.get_message_count(self.session_id)
