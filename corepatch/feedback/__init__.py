"""AI feedback and chat over the CorePatch chat endpoint."""

from corepatch.feedback.client import API_AREA_NAMES, FeedbackClient
from corepatch.feedback.chat import ChatManager
from corepatch.feedback.manager import FeedbackManager

__all__ = [
    "API_AREA_NAMES",
    "FeedbackClient",
    "ChatManager",
    "FeedbackManager",
]
