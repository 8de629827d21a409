"""Entry and Category data models."""

from datetime import date as date_type
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from corepatch.errors import EntryLockedError
from corepatch.models.wound import CoreWoundID


class Category(str, Enum):
    """Life area the user reflects on each day."""

    CAREER = "career"
    SPIRITUAL = "spiritual"
    MENTAL = "mental"
    EMOTION = "emotion"
    PHYSICAL = "physical"
    SOCIAL = "social"
    FINANCES = "finances"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def description(self) -> str:
        return CATEGORY_DESCRIPTIONS[self]


CATEGORY_DESCRIPTIONS = {
    Category.CAREER: "Professional growth, work goals, and career development",
    Category.SPIRITUAL: "Connection to purpose, meaning, and spiritual practices",
    Category.MENTAL: "Thoughts, mindset, learning, and cognitive wellbeing",
    Category.EMOTION: "Feelings, emotional processing, and relationship with emotions",
    Category.PHYSICAL: "Health, fitness, body care, and physical activities",
    Category.SOCIAL: "Relationships, connections, and social interactions",
    Category.FINANCES: "Money management, financial goals, and economic wellbeing",
}


class Entry(BaseModel):
    """One day's reflections under one core wound.

    The entry is locked once ``feedback`` is set; ``with_text`` refuses to
    modify a locked entry.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), description="Entry ID")
    wound_id: Optional[CoreWoundID] = Field(
        default=None, description="Wound program (None if the stored value was invalid)"
    )
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    category_texts: dict[Category, str] = Field(
        default_factory=dict, validate_default=True, description="Reflection text per category"
    )
    feedback: Optional[str] = Field(default=None, description="AI feedback text")
    feedback_generated_at: Optional[datetime] = Field(
        default=None, description="When feedback was generated"
    )

    model_config = {"frozen": True}

    @field_validator("category_texts", mode="before")
    @classmethod
    def _exactly_seven_categories(cls, value):
        texts = {}
        for key, text in dict(value or {}).items():
            texts[Category(key)] = text or ""
        return {category: texts.get(category, "") for category in Category}

    @property
    def day(self) -> date_type:
        """Calendar day the entry belongs to."""
        return self.created_at.date()

    @property
    def is_locked(self) -> bool:
        return self.feedback is not None

    @property
    def completed_categories(self) -> list[Category]:
        """Categories with non-blank text, in display order."""
        return [c for c in Category if self.category_texts[c].strip()]

    @property
    def is_fully_completed(self) -> bool:
        return len(self.completed_categories) == len(Category)

    def get_text(self, category: Category) -> str:
        return self.category_texts[Category(category)]

    def with_text(self, category: Category, text: str) -> "Entry":
        """Return a copy with one category's text replaced.

        Raises:
            EntryLockedError: If the entry already has feedback.
        """
        if self.is_locked:
            raise EntryLockedError(f"Entry for {self.day.isoformat()} is locked")
        texts = dict(self.category_texts)
        texts[Category(category)] = text
        return self.model_copy(update={"category_texts": texts})

    def with_feedback(self, feedback: str, generated_at: Optional[datetime] = None) -> "Entry":
        """Return a locked copy carrying the given feedback."""
        return self.model_copy(
            update={
                "feedback": feedback,
                "feedback_generated_at": generated_at or datetime.now(),
            }
        )
