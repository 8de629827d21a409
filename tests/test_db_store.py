"""Property-based tests for the database store."""

import sqlite3
import tempfile
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from corepatch.db.store import DataStore, midnight
from corepatch.models import (
    Category,
    ChatMessage,
    ChatSession,
    CoreWoundID,
    Entry,
    MessageType,
)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        yield DataStore(db_path)


WOUND = CoreWoundID.SOMETHING_IS_WRONG_WITH_ME


class TestDatabaseSchemaCompleteness:
    """
    *For any* fresh database, all required tables (entries, wounds,
    chat_sessions, chat_messages) should exist.
    """

    def test_schema_completeness(self, temp_db: DataStore):
        tables = temp_db.get_tables()

        for table in DataStore.REQUIRED_TABLES:
            assert table in tables, f"Required table '{table}' is missing"

    def test_reopening_keeps_data(self, temp_db: DataStore):
        entry = Entry(wound_id=WOUND).with_text(Category.CAREER, "Kept")
        temp_db.save_entry(entry)

        reopened = DataStore(temp_db.db_path)
        assert reopened.get_entry(entry.id) == entry


class TestEntryPersistence:
    """
    *For any* set of category texts, a saved entry reads back unchanged,
    including whitespace.
    """

    @given(
        texts=st.fixed_dictionaries({c: st.text(max_size=30) for c in Category}),
        hour=st.integers(min_value=0, max_value=23),
    )
    @settings(max_examples=25)
    def test_entry_round_trip(self, texts: dict, hour: int):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            entry = Entry(
                wound_id=WOUND,
                created_at=datetime(2026, 10, 19, hour, 15),
                category_texts=texts,
            )
            store.save_entry(entry)

            assert store.get_entry(entry.id) == entry

    def test_save_replaces_existing(self, temp_db: DataStore):
        entry = Entry(wound_id=WOUND)
        temp_db.save_entry(entry)
        temp_db.save_entry(entry.with_text(Category.PHYSICAL, "Ran 5k"))

        stored = temp_db.get_entry(entry.id)
        assert stored.get_text(Category.PHYSICAL) == "Ran 5k"
        assert len(temp_db.get_entries(WOUND)) == 1

    def test_feedback_round_trip(self, temp_db: DataStore):
        moment = datetime(2026, 10, 19, 20, 30)
        entry = Entry(wound_id=WOUND).with_text(Category.CAREER, "x").with_feedback("Good", moment)
        temp_db.save_entry(entry)

        stored = temp_db.get_entry(entry.id)
        assert stored.is_locked
        assert stored.feedback_generated_at == moment

    def test_delete_entry(self, temp_db: DataStore):
        entry = Entry(wound_id=WOUND)
        temp_db.save_entry(entry)
        temp_db.delete_entry(entry.id)

        assert temp_db.get_entry(entry.id) is None

    def test_unknown_entry(self, temp_db: DataStore):
        assert temp_db.get_entry("missing") is None


class TestEntryQueries:
    """Entries are filtered by wound and by half-open creation windows."""

    def test_window_bounds(self, temp_db: DataStore):
        for day in (17, 18, 19):
            temp_db.save_entry(Entry(wound_id=WOUND, created_at=datetime(2026, 10, day, 12)))

        found = temp_db.get_entries(
            WOUND, start=midnight(date(2026, 10, 18)), end=midnight(date(2026, 10, 19))
        )
        assert [e.day for e in found] == [date(2026, 10, 18)]

    def test_ordering(self, temp_db: DataStore):
        for day in (19, 17, 18):
            temp_db.save_entry(Entry(wound_id=WOUND, created_at=datetime(2026, 10, day, 8)))

        ascending = [e.day.day for e in temp_db.get_entries(WOUND)]
        descending = [e.day.day for e in temp_db.get_entries(WOUND, newest_first=True)]
        assert ascending == [17, 18, 19]
        assert descending == [19, 18, 17]

    def test_filters_by_wound(self, temp_db: DataStore):
        temp_db.save_entry(Entry(wound_id=WOUND))
        temp_db.save_entry(Entry(wound_id=CoreWoundID.I_HAVE_NO_CONTROL))

        assert len(temp_db.get_entries(WOUND)) == 1

    def test_entry_for_day_oldest_wins(self, temp_db: DataStore):
        later = Entry(wound_id=WOUND, created_at=datetime(2026, 10, 19, 18))
        earlier = Entry(wound_id=WOUND, created_at=datetime(2026, 10, 19, 7))
        temp_db.save_entry(later)
        temp_db.save_entry(earlier)

        assert temp_db.get_entry_for_day(WOUND, date(2026, 10, 19)).id == earlier.id

    def test_entry_for_day_includes_midnight(self, temp_db: DataStore):
        entry = Entry(wound_id=WOUND, created_at=midnight(date(2026, 10, 19)))
        temp_db.save_entry(entry)

        assert temp_db.get_entry_for_day(WOUND, date(2026, 10, 19)).id == entry.id
        assert temp_db.get_entry_for_day(WOUND, date(2026, 10, 18)) is None

    def test_first_entry(self, temp_db: DataStore):
        assert temp_db.get_first_entry(WOUND) is None

        base = datetime(2026, 10, 1, 9)
        for offset in (5, 0, 3):
            temp_db.save_entry(Entry(wound_id=WOUND, created_at=base + timedelta(days=offset)))

        assert temp_db.get_first_entry(WOUND).day == date(2026, 10, 1)

    def test_unknown_stored_wound_decodes_to_none(self, temp_db: DataStore):
        entry = Entry(wound_id=WOUND)
        temp_db.save_entry(entry)
        conn = sqlite3.connect(temp_db.db_path)
        conn.execute("UPDATE entries SET wound_id = 'RETIRED_WOUND' WHERE id = ?", (entry.id,))
        conn.commit()
        conn.close()

        assert temp_db.get_entry(entry.id).wound_id is None


class TestWoundSelection:
    """
    *For any* sequence of selections, exactly the last selected wound is
    active and entries for other wounds are kept.
    """

    @given(st.lists(st.sampled_from(list(CoreWoundID)), min_size=1, max_size=6))
    @settings(max_examples=20)
    def test_single_active_wound(self, selections: list):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            for wound_id in selections:
                store.set_active_wound(wound_id)

            active = [w for w in store.get_wounds() if w.is_active]
            assert len(active) == 1
            assert store.get_active_wound().wound_id == selections[-1]

    def test_switching_keeps_entries(self, temp_db: DataStore):
        temp_db.set_active_wound(WOUND)
        entry = Entry(wound_id=WOUND).with_text(Category.SOCIAL, "Hosted dinner")
        temp_db.save_entry(entry)

        temp_db.set_active_wound(CoreWoundID.I_CANT_TRUST_ANYONE)

        assert temp_db.get_entry(entry.id) == entry

    def test_no_active_wound(self, temp_db: DataStore):
        assert temp_db.get_active_wound() is None

    def test_undecodable_wound_is_ignored(self, temp_db: DataStore):
        conn = sqlite3.connect(temp_db.db_path)
        conn.execute(
            "INSERT INTO wounds (wound_id, started_at, is_active) VALUES (?, ?, 1)",
            ("NOT_A_WOUND", "2026-10-01T09:00:00"),
        )
        conn.commit()
        conn.close()

        assert temp_db.get_wounds() == []
        assert temp_db.get_active_wound() is None


class TestChatPersistence:
    """Chat messages belong to a session and read back in time order."""

    def test_messages_ordered_by_timestamp(self, temp_db: DataStore):
        session = ChatSession()
        temp_db.create_chat_session(session)
        base = datetime(2026, 10, 19, 9)
        for minutes in (5, 1, 3):
            temp_db.add_chat_message(ChatMessage(
                session_id=session.id,
                content=f"m{minutes}",
                timestamp=base + timedelta(minutes=minutes),
                is_from_user=True,
            ))

        contents = [m.content for m in temp_db.get_chat_messages(session.id)]
        assert contents == ["m1", "m3", "m5"]

    def test_sessions_newest_first(self, temp_db: DataStore):
        older = ChatSession(created_at=datetime(2026, 10, 1))
        newer = ChatSession(created_at=datetime(2026, 10, 19))
        temp_db.create_chat_session(older)
        temp_db.create_chat_session(newer)

        assert [s.id for s in temp_db.get_chat_sessions()] == [newer.id, older.id]

    def test_message_fields_round_trip(self, temp_db: DataStore):
        session = ChatSession()
        temp_db.create_chat_session(session)
        message = ChatMessage(
            session_id=session.id,
            content="Great evidence",
            is_from_user=False,
            message_type=MessageType.FEEDBACK,
            related_entry_id="entry-1",
        )
        temp_db.add_chat_message(message)

        assert temp_db.get_chat_messages(session.id) == [message]


class TestFeedbackAtomicity:
    """
    Saving feedback writes the locked entry and its transcript together,
    or not at all.
    """

    def test_save_feedback_commits_both(self, temp_db: DataStore):
        session = ChatSession()
        temp_db.create_chat_session(session)
        entry = Entry(wound_id=WOUND).with_text(Category.CAREER, "Led the meeting")
        temp_db.save_entry(entry)

        locked = entry.with_feedback("Strong evidence")
        reply = ChatMessage(
            session_id=session.id,
            content="Strong evidence",
            is_from_user=False,
            message_type=MessageType.FEEDBACK,
            related_entry_id=entry.id,
        )
        temp_db.save_feedback(locked, [reply])

        assert temp_db.get_entry(entry.id).feedback == "Strong evidence"
        assert temp_db.get_chat_messages(session.id) == [reply]

    def test_save_feedback_rolls_back(self, temp_db: DataStore):
        entry = Entry(wound_id=WOUND).with_text(Category.CAREER, "Led the meeting")
        temp_db.save_entry(entry)

        orphan = ChatMessage(session_id="no-such-session", content="x", is_from_user=True)
        with pytest.raises(sqlite3.IntegrityError):
            temp_db.save_feedback(entry.with_feedback("Strong evidence"), [orphan])

        stored = temp_db.get_entry(entry.id)
        assert not stored.is_locked
        assert stored == entry
