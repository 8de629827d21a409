"""Chat transcript data models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class MessageType(str, Enum):
    """Kind of transcript message."""

    GENERAL = "general"
    FEEDBACK = "feedback"
    DAILY_REFLECTION = "daily_reflection"


class ChatSession(BaseModel):
    """A conversation with the assistant."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Session ID")
    created_at: datetime = Field(default_factory=datetime.now, description="Session creation timestamp")
    title: str = Field(default="Chat Session", description="Session title")

    model_config = {"frozen": True}


class ChatMessage(BaseModel):
    """A single transcript message."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Message ID")
    session_id: str = Field(..., description="Owning session ID")
    content: str = Field(..., description="Message text")
    timestamp: datetime = Field(default_factory=datetime.now, description="Message timestamp")
    is_from_user: bool = Field(..., description="True for user turns, False for assistant turns")
    message_type: MessageType = Field(default=MessageType.GENERAL, description="Message kind")
    related_entry_id: Optional[str] = Field(default=None, description="Entry this message refers to")

    model_config = {"frozen": True}

    @property
    def role(self) -> str:
        return "user" if self.is_from_user else "assistant"
