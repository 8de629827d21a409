"""HTTP client for the CorePatch chat endpoint.

The same endpoint serves two purposes: general chat turns, and feedback on a
completed daily entry (a chat turn that also carries ``formData``).
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from corepatch.config import DEFAULT_API_URL
from corepatch.errors import FeedbackError
from corepatch.models import Category, ChatMessage, Entry, MessageType

logger = logging.getLogger(__name__)

# Category names expected by the endpoint; unlisted categories pass through
API_AREA_NAMES = {
    Category.EMOTION: "emotional",
    Category.SOCIAL: "relationships",
    Category.FINANCES: "financial",
}


class FormData(BaseModel):
    date: str = Field(..., description="Entry date, YYYY-MM-DD")
    areas: dict[str, str] = Field(..., description="Reflection text keyed by API area name")


class RequestMessage(BaseModel):
    role: str = Field(..., description="'user' or 'assistant'")
    content: str = Field(..., description="Message text")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    form_data: Optional[FormData] = Field(default=None, serialization_alias="formData")


class ChatRequest(BaseModel):
    messages: list[RequestMessage]
    user_id: str = Field(..., serialization_alias="userId")


class ResponseMessage(BaseModel):
    role: str
    content: str


class ChatResponse(BaseModel):
    message: ResponseMessage


def iso_timestamp(moment: datetime) -> str:
    """ISO 8601 timestamp with the local UTC offset."""
    return moment.astimezone().isoformat(timespec="seconds")


def display_date(moment: datetime) -> str:
    """Abbreviated date, e.g. 'Oct 19, 2026'."""
    return f"{moment.strftime('%b')} {moment.day}, {moment.year}"


def map_areas(entry: Entry) -> dict[str, str]:
    """Completed category texts keyed by their API area names."""
    return {
        API_AREA_NAMES.get(category, category.value): entry.get_text(category)
        for category in entry.completed_categories
    }


def evidence_prompt(counter_belief: str, moment: datetime) -> str:
    return f"Here's my daily evidence that '{counter_belief}' for {display_date(moment)}"


class FeedbackClient:
    """Client for the chat endpoint.

    Every call is a single POST with no retry.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        user_id: str = "corepatch-user",
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """Initialize the client.

        Args:
            api_url: Chat endpoint URL.
            user_id: User ID sent with every request.
            timeout: Request timeout in seconds, None for the httpx default.
            http_client: Pre-built client, mainly for tests.
        """
        self.api_url = api_url
        self.user_id = user_id
        self.timeout = timeout
        self._http_client = http_client

    def _client(self) -> httpx.Client:
        if self._http_client is None:
            if self.timeout is None:
                self._http_client = httpx.Client()
            else:
                self._http_client = httpx.Client(timeout=self.timeout)
        return self._http_client

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def _post(self, request: ChatRequest) -> httpx.Response:
        payload = request.model_dump(by_alias=True, exclude_none=True)
        logger.debug("Posting %d messages to %s", len(request.messages), self.api_url)
        try:
            response = self._client().post(self.api_url, json=payload)
        except httpx.HTTPError as e:
            raise FeedbackError(f"Could not reach chat endpoint: {e}") from e

        if response.status_code != 200:
            logger.warning("Chat endpoint returned HTTP %d", response.status_code)
            raise FeedbackError(
                f"Chat endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def build_feedback_request(
        self,
        entry: Entry,
        counter_belief: str,
        history: Iterable[ChatMessage] = (),
    ) -> ChatRequest:
        """Build the feedback request for an entry.

        Only general chat turns from ``history`` are sent, oldest first.
        """
        messages = [
            RequestMessage(
                role=message.role,
                content=message.content,
                timestamp=iso_timestamp(message.timestamp),
            )
            for message in sorted(history, key=lambda m: m.timestamp)
            if message.message_type == MessageType.GENERAL
        ]
        messages.append(
            RequestMessage(
                role="user",
                content=evidence_prompt(counter_belief, entry.created_at),
                timestamp=iso_timestamp(entry.created_at),
                form_data=FormData(date=entry.day.isoformat(), areas=map_areas(entry)),
            )
        )
        return ChatRequest(messages=messages, user_id=self.user_id)

    def generate_feedback(
        self,
        entry: Entry,
        counter_belief: str,
        history: Iterable[ChatMessage] = (),
    ) -> str:
        """Request feedback on a daily entry.

        Args:
            entry: Entry with the day's reflections.
            counter_belief: Counter-belief of the entry's wound.
            history: Prior chat transcript.

        Returns:
            The assistant's reply, or the raw response body if it does not
            have the expected shape.

        Raises:
            FeedbackError: On transport failure or a non-200 status.
        """
        response = self._post(self.build_feedback_request(entry, counter_belief, history))
        try:
            return ChatResponse.model_validate_json(response.content).message.content
        except ValidationError as e:
            logger.warning("Unexpected feedback response shape, using raw body: %s", e)
            return response.text

    def send_chat(self, history: Iterable[ChatMessage]) -> str:
        """Send a general chat conversation and return the assistant reply.

        Raises:
            FeedbackError: On transport failure, a non-200 status, or an
                unexpected response body.
        """
        request = ChatRequest(
            messages=[
                RequestMessage(
                    role=message.role,
                    content=message.content,
                    timestamp=iso_timestamp(message.timestamp),
                )
                for message in sorted(history, key=lambda m: m.timestamp)
            ],
            user_id=self.user_id,
        )
        response = self._post(request)
        try:
            return ChatResponse.model_validate_json(response.content).message.content
        except ValidationError as e:
            raise FeedbackError(f"Unexpected chat response: {e}") from e
