"""SQLite data store for CorePatch."""

import logging
import sqlite3
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Iterable, Optional

from corepatch.models import (
    Category,
    ChatMessage,
    ChatSession,
    CoreWoundID,
    Entry,
    MessageType,
    UserCoreWound,
)

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = (
    "id, wound_id, created_at, "
    + ", ".join(c.value for c in Category)
    + ", feedback, feedback_generated_at"
)


def midnight(day: date) -> datetime:
    """Local midnight at the start of ``day``."""
    return datetime.combine(day, time())


class DataStore:
    """SQLite-based data store for CorePatch."""

    REQUIRED_TABLES = [
        "entries",
        "wounds",
        "chat_sessions",
        "chat_messages",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            # One row per (wound, day); the seven category texts are columns
            category_columns = ",\n".join(
                f"                    {c.value} TEXT NOT NULL DEFAULT ''" for c in Category
            )
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS entries (
                    id TEXT PRIMARY KEY,
                    wound_id TEXT,
                    created_at TEXT NOT NULL,
{category_columns},
                    feedback TEXT,
                    feedback_generated_at TEXT
                )
            """)
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_entries_wound_created "
                "ON entries (wound_id, created_at)"
            )

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS wounds (
                    wound_id TEXT PRIMARY KEY,
                    started_at TEXT,
                    is_active INTEGER NOT NULL DEFAULT 1
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS chat_sessions (
                    id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL,
                    title TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS chat_messages (
                    id TEXT PRIMARY KEY,
                    session_id TEXT NOT NULL REFERENCES chat_sessions(id) ON DELETE CASCADE,
                    content TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    is_from_user INTEGER NOT NULL,
                    message_type TEXT NOT NULL DEFAULT 'general',
                    related_entry_id TEXT
                )
            """)

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Entries ====================

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> Entry:
        raw_wound = row["wound_id"]
        wound_id = CoreWoundID.decode(raw_wound)
        if raw_wound is not None and wound_id is None:
            logger.warning("Entry %s has unknown wound id %r", row["id"], raw_wound)
        generated_at = row["feedback_generated_at"]
        return Entry(
            id=row["id"],
            wound_id=wound_id,
            created_at=datetime.fromisoformat(row["created_at"]),
            category_texts={c: row[c.value] for c in Category},
            feedback=row["feedback"],
            feedback_generated_at=datetime.fromisoformat(generated_at) if generated_at else None,
        )

    @staticmethod
    def _write_entry(cursor: sqlite3.Cursor, entry: Entry) -> None:
        placeholders = ", ".join("?" for _ in range(5 + len(Category)))
        cursor.execute(
            f"INSERT OR REPLACE INTO entries ({_ENTRY_COLUMNS}) VALUES ({placeholders})",
            (
                entry.id,
                entry.wound_id.value if entry.wound_id else None,
                entry.created_at.isoformat(),
                *(entry.category_texts[c] for c in Category),
                entry.feedback,
                entry.feedback_generated_at.isoformat() if entry.feedback_generated_at else None,
            ),
        )

    def save_entry(self, entry: Entry) -> None:
        """Insert or replace an entry.

        Args:
            entry: Entry to save.
        """
        conn = self._get_connection()
        try:
            self._write_entry(conn.cursor(), entry)
            conn.commit()
        finally:
            conn.close()

    def get_entry(self, entry_id: str) -> Optional[Entry]:
        """Get an entry by ID.

        Args:
            entry_id: Entry ID.

        Returns:
            Entry if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE id = ?", (entry_id,))
            row = cursor.fetchone()
            return self._row_to_entry(row) if row else None
        finally:
            conn.close()

    def get_entries(
        self,
        wound_id: CoreWoundID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        newest_first: bool = False,
    ) -> list[Entry]:
        """Get entries for a wound, optionally bounded by creation time.

        Args:
            wound_id: Wound program to filter on.
            start: Inclusive lower bound on ``created_at``.
            end: Exclusive upper bound on ``created_at``.
            newest_first: Sort descending instead of ascending.

        Returns:
            List of entries ordered by ``created_at``.
        """
        query = f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE wound_id = ?"
        params: list = [wound_id.value]
        if start is not None:
            query += " AND created_at >= ?"
            params.append(start.isoformat())
        if end is not None:
            query += " AND created_at < ?"
            params.append(end.isoformat())
        query += " ORDER BY created_at DESC" if newest_first else " ORDER BY created_at"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [self._row_to_entry(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_entry_for_day(self, wound_id: CoreWoundID, day: date) -> Optional[Entry]:
        """Get the entry for a calendar day.

        If several records exist for the same day the oldest one wins.
        """
        entries = self.get_entries(
            wound_id, start=midnight(day), end=midnight(day + timedelta(days=1))
        )
        if len(entries) > 1:
            logger.warning(
                "Found %d entries for %s on %s, using the first",
                len(entries),
                wound_id.value,
                day.isoformat(),
            )
        return entries[0] if entries else None

    def get_first_entry(self, wound_id: CoreWoundID) -> Optional[Entry]:
        """Get the earliest entry for a wound."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_ENTRY_COLUMNS} FROM entries
                WHERE wound_id = ?
                ORDER BY created_at
                LIMIT 1
                """,
                (wound_id.value,),
            )
            row = cursor.fetchone()
            return self._row_to_entry(row) if row else None
        finally:
            conn.close()

    def delete_entry(self, entry_id: str) -> None:
        """Delete an entry.

        Args:
            entry_id: ID of the entry to delete.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM entries WHERE id = ?", (entry_id,))
            conn.commit()
        finally:
            conn.close()

    def save_feedback(self, entry: Entry, messages: Iterable[ChatMessage]) -> None:
        """Save a locked entry together with its transcript messages.

        Both writes happen in one transaction: either the entry's feedback and
        every message persist, or nothing does.

        Args:
            entry: Entry carrying the new feedback.
            messages: Transcript messages to append.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            self._write_entry(cursor, entry)
            for message in messages:
                self._write_chat_message(cursor, message)
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ==================== Wounds ====================

    def set_active_wound(
        self, wound_id: CoreWoundID, started_at: Optional[datetime] = None
    ) -> UserCoreWound:
        """Make a wound the single active program.

        All other wounds are deactivated; their entries are kept.

        Args:
            wound_id: Wound to activate (created if new).
            started_at: Start timestamp, defaults to now.

        Returns:
            The activated wound.
        """
        wound = UserCoreWound(
            wound_id=wound_id, started_at=started_at or datetime.now(), is_active=True
        )
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("UPDATE wounds SET is_active = 0")
            cursor.execute(
                """
                INSERT OR REPLACE INTO wounds (wound_id, started_at, is_active)
                VALUES (?, ?, 1)
                """,
                (wound.wound_id.value, wound.started_at.isoformat()),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()
        return wound

    def get_wounds(self) -> list[UserCoreWound]:
        """Get all stored wounds, skipping rows whose id cannot be decoded."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT wound_id, started_at, is_active FROM wounds ORDER BY started_at"
            )
            wounds = []
            for row in cursor.fetchall():
                wound_id = CoreWoundID.decode(row["wound_id"])
                if wound_id is None:
                    logger.warning("Ignoring stored wound with unknown id %r", row["wound_id"])
                    continue
                wounds.append(
                    UserCoreWound(
                        wound_id=wound_id,
                        started_at=(
                            datetime.fromisoformat(row["started_at"]) if row["started_at"] else None
                        ),
                        is_active=bool(row["is_active"]),
                    )
                )
            return wounds
        finally:
            conn.close()

    def get_active_wound(self) -> Optional[UserCoreWound]:
        """Get the active wound, or None if none is active or decodable."""
        for wound in self.get_wounds():
            if wound.is_active:
                return wound
        return None

    # ==================== Chat ====================

    @staticmethod
    def _write_chat_message(cursor: sqlite3.Cursor, message: ChatMessage) -> None:
        cursor.execute(
            """
            INSERT INTO chat_messages
            (id, session_id, content, timestamp, is_from_user, message_type, related_entry_id)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                message.id,
                message.session_id,
                message.content,
                message.timestamp.isoformat(),
                1 if message.is_from_user else 0,
                message.message_type.value,
                message.related_entry_id,
            ),
        )

    def create_chat_session(self, session: ChatSession) -> None:
        """Save a new chat session."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO chat_sessions (id, created_at, title) VALUES (?, ?, ?)",
                (session.id, session.created_at.isoformat(), session.title),
            )
            conn.commit()
        finally:
            conn.close()

    def get_chat_sessions(self) -> list[ChatSession]:
        """Get all chat sessions, newest first."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, created_at, title FROM chat_sessions ORDER BY created_at DESC"
            )
            return [
                ChatSession(
                    id=row["id"],
                    created_at=datetime.fromisoformat(row["created_at"]),
                    title=row["title"],
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def add_chat_message(self, message: ChatMessage) -> None:
        """Append a message to a chat session."""
        conn = self._get_connection()
        try:
            self._write_chat_message(conn.cursor(), message)
            conn.commit()
        finally:
            conn.close()

    def get_chat_messages(self, session_id: str) -> list[ChatMessage]:
        """Get a session's messages in chronological order."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, session_id, content, timestamp, is_from_user,
                       message_type, related_entry_id
                FROM chat_messages
                WHERE session_id = ?
                ORDER BY timestamp
                """,
                (session_id,),
            )
            return [
                ChatMessage(
                    id=row["id"],
                    session_id=row["session_id"],
                    content=row["content"],
                    timestamp=datetime.fromisoformat(row["timestamp"]),
                    is_from_user=bool(row["is_from_user"]),
                    message_type=MessageType(row["message_type"]),
                    related_entry_id=row["related_entry_id"],
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

