"""Chat transcript management."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from corepatch.db.store import DataStore
from corepatch.feedback.client import FeedbackClient, display_date
from corepatch.models import ChatMessage, ChatSession, Entry, MessageType

logger = logging.getLogger(__name__)


def format_reflection(entry: Entry, counter_belief: str) -> str:
    """Transcript text for a submitted day of reflections."""
    reflection = (
        f"Here's my daily evidence that '{counter_belief}' "
        f"for {display_date(entry.created_at)}:\n\n"
    )
    for category in entry.completed_categories:
        reflection += f"**{category.display_name}**: {entry.get_text(category)}\n\n"
    reflection += "Can you provide some insights?"
    return reflection


class ChatManager:
    """Owns the current chat session and its messages."""

    def __init__(self, store: DataStore, client: Optional[FeedbackClient] = None):
        self.store = store
        self.client = client

    def current_session(self) -> ChatSession:
        """Most recent session, created if none exists."""
        sessions = self.store.get_chat_sessions()
        if sessions:
            return sessions[0]
        session = ChatSession()
        self.store.create_chat_session(session)
        logger.info("Created chat session %s", session.id)
        return session

    def messages(self) -> list[ChatMessage]:
        return self.store.get_chat_messages(self.current_session().id)

    def add_message(
        self,
        content: str,
        is_from_user: bool,
        message_type: MessageType = MessageType.GENERAL,
        related_entry_id: Optional[str] = None,
    ) -> ChatMessage:
        message = ChatMessage(
            session_id=self.current_session().id,
            content=content,
            is_from_user=is_from_user,
            message_type=message_type,
            related_entry_id=related_entry_id,
        )
        self.store.add_chat_message(message)
        return message

    def feedback_messages(
        self, session: ChatSession, entry: Entry, feedback: str, counter_belief: str
    ) -> list[ChatMessage]:
        """Reflection and feedback turns for an entry, not yet persisted.

        The reflection turn is stamped just before the feedback turn so the
        pair sorts in conversation order.
        """
        now = datetime.now()
        return [
            ChatMessage(
                session_id=session.id,
                content=format_reflection(entry, counter_belief),
                timestamp=now,
                is_from_user=True,
                message_type=MessageType.DAILY_REFLECTION,
                related_entry_id=entry.id,
            ),
            ChatMessage(
                session_id=session.id,
                content=feedback,
                timestamp=now + timedelta(microseconds=1),
                is_from_user=False,
                message_type=MessageType.FEEDBACK,
                related_entry_id=entry.id,
            ),
        ]

    def send_chat_message(self, text: str) -> str:
        """Send a chat turn and record the assistant's reply.

        Raises:
            FeedbackError: If the endpoint fails; the user turn stays recorded.
        """
        if self.client is None:
            raise RuntimeError("ChatManager has no FeedbackClient configured")
        self.add_message(text, is_from_user=True)
        reply = self.client.send_chat(self.messages())
        self.add_message(reply, is_from_user=False)
        return reply
