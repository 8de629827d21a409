"""Data models for CorePatch."""

from corepatch.models.wound import CoreWoundID, UserCoreWound, WoundDefinition
from corepatch.models.entry import Category, Entry
from corepatch.models.chat import ChatMessage, ChatSession, MessageType

__all__ = [
    "Category",
    "Entry",
    "CoreWoundID",
    "WoundDefinition",
    "UserCoreWound",
    "ChatMessage",
    "ChatSession",
    "MessageType",
]
