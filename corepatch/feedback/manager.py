"""Feedback generation for completed daily entries."""

import logging
import sqlite3
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from corepatch.catalog import counter_belief_for
from corepatch.db.store import DataStore
from corepatch.errors import StorageError
from corepatch.feedback.chat import ChatManager
from corepatch.feedback.client import FeedbackClient
from corepatch.models import Entry

logger = logging.getLogger(__name__)


class FeedbackManager:
    """Generates feedback for entries and locks them.

    Generation is idempotent: an entry that already has feedback, has nothing
    written, or already has a request in flight is skipped without contacting
    the endpoint. Failures leave the entry untouched so it can be retried.
    """

    def __init__(
        self,
        store: DataStore,
        client: FeedbackClient,
        chat: Optional[ChatManager] = None,
    ):
        self.store = store
        self.client = client
        self.chat = chat or ChatManager(store, client)
        self._lock = threading.Lock()
        self._in_flight: set[str] = set()
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def is_generating(self) -> bool:
        with self._lock:
            return bool(self._in_flight)

    def generate_feedback(self, entry: Entry) -> Optional[Entry]:
        """Generate, store and return feedback for an entry.

        Args:
            entry: Entry to submit.

        Returns:
            The locked entry, or None if generation was skipped.

        Raises:
            FeedbackError: If the endpoint could not produce feedback.
            StorageError: If the result could not be saved.
        """
        if entry.is_locked:
            logger.debug("Entry %s already has feedback, skipping", entry.id)
            return None
        if not entry.completed_categories:
            logger.debug("Entry %s has no completed categories, skipping", entry.id)
            return None

        with self._lock:
            if entry.id in self._in_flight:
                logger.debug("Feedback for entry %s already in flight", entry.id)
                return None
            self._in_flight.add(entry.id)

        try:
            counter_belief = counter_belief_for(entry.wound_id)
            try:
                session = self.chat.current_session()
                history = self.store.get_chat_messages(session.id)
            except sqlite3.Error as e:
                raise StorageError(f"Could not read chat history: {e}") from e

            feedback = self.client.generate_feedback(entry, counter_belief, history)

            try:
                current = self.store.get_entry(entry.id)
                if current is None:
                    logger.info("Entry %s was deleted before feedback arrived", entry.id)
                    return None
                if current.is_locked:
                    logger.info("Entry %s was locked by another request", entry.id)
                    return None
                if current.category_texts != entry.category_texts:
                    logger.info("Entry %s was edited while feedback was pending, discarding", entry.id)
                    return None
                locked = current.with_feedback(feedback)
                self.store.save_feedback(
                    locked, self.chat.feedback_messages(session, locked, feedback, counter_belief)
                )
            except sqlite3.Error as e:
                raise StorageError(f"Could not save feedback: {e}") from e

            logger.info("Saved feedback for entry %s", entry.id)
            return locked
        finally:
            with self._lock:
                self._in_flight.discard(entry.id)

    def submit(self, entry: Entry) -> Future:
        """Run ``generate_feedback`` in the background.

        Requests run one at a time and are not cancelled when the caller goes
        away.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="feedback")
        return self._executor.submit(self.generate_feedback, entry)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
