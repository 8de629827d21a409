"""Editing session for one day's entry."""

import logging
import sqlite3
import threading
from concurrent.futures import Future
from datetime import date, datetime
from enum import Enum
from typing import Optional

from corepatch.db.store import DataStore, midnight
from corepatch.errors import CorePatchError, StorageError
from corepatch.feedback.manager import FeedbackManager
from corepatch.models import Category, CoreWoundID, Entry
from corepatch.progress.days import program_start

logger = logging.getLogger(__name__)


class EntryState(str, Enum):
    """Where an entry is in its completion lifecycle."""

    EDITING = "editing"
    COMPLETE = "complete"
    PENDING = "pending"
    LOCKED = "locked"


class EntryEditor:
    """Session-scoped editor for the entry of a single calendar day.

    Text changes are kept in memory and written after a quiet period
    (``autosave_delay``). Completing the seventh category flushes the text and
    submits the entry for feedback, once per session. Use as a context
    manager so pending text is flushed on exit::

        with EntryEditor(store, wound_id, feedback=manager) as editor:
            editor.set_text(Category.CAREER, "Shipped the release")
    """

    def __init__(
        self,
        store: DataStore,
        wound_id: CoreWoundID,
        day: Optional[date] = None,
        feedback: Optional[FeedbackManager] = None,
        autosave_delay: float = 0.6,
        today: Optional[date] = None,
    ):
        """Initialize the editor.

        Args:
            store: Data store holding the entry.
            wound_id: Active wound.
            day: Calendar day to edit, defaults to today.
            feedback: Manager used for feedback; None disables feedback.
            autosave_delay: Quiet period in seconds before text is saved.
            today: Override for the current date.
        """
        self.store = store
        self.wound_id = wound_id
        self.today = today or date.today()
        self.day = day or self.today
        self.feedback = feedback
        self.autosave_delay = autosave_delay

        self.entry: Optional[Entry] = None
        self.feedback_future: Optional[Future] = None
        self.feedback_error: Optional[CorePatchError] = None

        self._saved: Optional[Entry] = None
        self._persisted = False
        self._feedback_requested = False
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.RLock()

    def __enter__(self) -> "EntryEditor":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ==================== Lifecycle ====================

    def open(self) -> Entry:
        """Load the day's entry, creating it if it does not exist yet.

        Opening a fully written entry without feedback re-attempts feedback.

        Raises:
            ValueError: If the day is in the future or before the program start.
            StorageError: If the entry cannot be loaded or created.
        """
        if self.day > self.today:
            raise ValueError(f"Cannot write entries for a future day ({self.day.isoformat()})")

        try:
            start = program_start(self.store, self.wound_id)
            if self.day < (start or self.today):
                raise ValueError(
                    f"Cannot write entries before day 1 of the program ({self.day.isoformat()})"
                )
            entry = self.store.get_entry_for_day(self.wound_id, self.day)
            if entry is None:
                if self.day == self.today:
                    created_at = datetime.combine(self.day, datetime.now().time())
                else:
                    created_at = midnight(self.day)
                entry = Entry(wound_id=self.wound_id, created_at=created_at)
                self.store.save_entry(entry)
                logger.info("Created entry for %s", self.day.isoformat())
        except sqlite3.Error as e:
            raise StorageError(f"Could not open entry for {self.day.isoformat()}: {e}") from e

        with self._lock:
            self.entry = entry
            self._saved = entry
            self._persisted = True

        if entry.is_fully_completed and not entry.is_locked:
            self._request_feedback()
        return entry

    def close(self) -> None:
        """Flush pending text and stop the autosave timer."""
        try:
            self.flush()
        finally:
            self._cancel_timer()

    # ==================== Text ====================

    def _require_entry(self) -> Entry:
        if self.entry is None:
            raise RuntimeError("EntryEditor.open() must be called first")
        return self.entry

    def get_text(self, category: Category) -> str:
        return self._require_entry().get_text(category)

    @property
    def completed_categories(self) -> list[Category]:
        return self._require_entry().completed_categories

    @property
    def state(self) -> EntryState:
        entry = self._require_entry()
        if entry.is_locked:
            return EntryState.LOCKED
        if self.feedback_future is not None and not self.feedback_future.done():
            return EntryState.PENDING
        if entry.is_fully_completed:
            return EntryState.COMPLETE
        return EntryState.EDITING

    def set_text(self, category: Category, text: str) -> Entry:
        """Change a category's text and schedule an autosave.

        Raises:
            EntryLockedError: If the entry already has feedback.
        """
        with self._lock:
            entry = self._require_entry()
            was_complete = entry.is_fully_completed
            self.entry = entry.with_text(category, text)
            became_complete = not was_complete and self.entry.is_fully_completed
            if not became_complete:
                self._schedule_autosave()
            updated = self.entry

        if became_complete:
            self.flush()
            self._request_feedback()
        return updated

    # ==================== Persistence ====================

    def _cancel_timer(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule_autosave(self) -> None:
        self._cancel_timer()
        with self._lock:
            self._timer = threading.Timer(self.autosave_delay, self._autosave)
            self._timer.daemon = True
            self._timer.start()

    def _autosave(self) -> None:
        with self._lock:
            self._timer = None
            try:
                self._save()
            except sqlite3.Error as e:
                logger.error("Autosave failed for %s: %s", self.day.isoformat(), e)

    def flush(self) -> None:
        """Write pending text now.

        Raises:
            StorageError: If the entry cannot be written.
        """
        self._cancel_timer()
        with self._lock:
            try:
                self._save()
            except sqlite3.Error as e:
                raise StorageError(f"Could not save entry for {self.day.isoformat()}: {e}") from e

    def _save(self) -> None:
        entry = self.entry
        if entry is None or entry == self._saved:
            return

        stored = self.store.get_entry(entry.id) if self._persisted else None
        if stored is not None and stored.is_locked:
            logger.info("Entry %s was locked in the meantime, dropping unsaved text", entry.id)
            self.entry = stored
            self._saved = stored
            return

        if entry.completed_categories:
            self.store.save_entry(entry)
            self._persisted = True
        elif self._persisted and self._saved is not None and self._saved.completed_categories:
            # Every category was cleared
            self.store.delete_entry(entry.id)
            self._persisted = False
            logger.info("Deleted cleared entry for %s", self.day.isoformat())
        elif self._persisted:
            self.store.save_entry(entry)
        self._saved = entry

    # ==================== Feedback ====================

    def _request_feedback(self) -> None:
        with self._lock:
            if self.feedback is None or self._feedback_requested:
                return
            entry = self._require_entry()
            self._feedback_requested = True
            self.feedback_error = None
            self.feedback_future = self.feedback.submit(entry)
        self.feedback_future.add_done_callback(self._on_feedback_done)

    def _on_feedback_done(self, future: Future) -> None:
        try:
            locked = future.result()
        except CorePatchError as e:
            logger.warning("Feedback for %s failed: %s", self.day.isoformat(), e)
            self.feedback_error = e
            return

        if locked is not None:
            self._cancel_timer()
            with self._lock:
                self.entry = locked
                self._saved = locked
                self._persisted = True

    def retry_feedback(self) -> Optional[Future]:
        """Explicitly re-attempt feedback for this entry.

        Returns:
            The submitted request, or None if there is nothing to submit.
        """
        entry = self._require_entry()
        if entry.is_locked or not entry.completed_categories or self.feedback is None:
            return None
        self.flush()
        with self._lock:
            self._feedback_requested = False
        self._request_feedback()
        return self.feedback_future
