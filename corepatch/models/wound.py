"""Core wound data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CoreWoundID(str, Enum):
    """Identifier of a core wound program."""

    IM_NOT_GOOD_ENOUGH = "IM_NOT_GOOD_ENOUGH"
    SOMETHING_IS_WRONG_WITH_ME = "SOMETHING_IS_WRONG_WITH_ME"
    PEOPLE_ALWAYS_LEAVE_ME = "PEOPLE_ALWAYS_LEAVE_ME"
    I_CANT_TRUST_ANYONE = "I_CANT_TRUST_ANYONE"
    I_HAVE_NO_CONTROL = "I_HAVE_NO_CONTROL"

    @classmethod
    def decode(cls, raw: Optional[str]) -> Optional["CoreWoundID"]:
        """Decode a stored wound identifier, returning None if unknown."""
        if raw is None:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


class WoundDefinition(BaseModel):
    """Static description of a core wound and its counter-belief."""

    id: CoreWoundID = Field(..., description="Wound identifier")
    title: str = Field(..., min_length=1, description="Short title")
    description: str = Field(..., description="What the wound feels like")
    counter_belief: str = Field(..., min_length=1, description="Belief the program builds evidence for")

    model_config = {"frozen": True}


class UserCoreWound(BaseModel):
    """A wound program the user has selected."""

    wound_id: CoreWoundID = Field(..., description="Wound identifier")
    started_at: Optional[datetime] = Field(default=None, description="When the program was (re)started")
    is_active: bool = Field(default=True, description="Whether this is the active program")

    model_config = {"frozen": True}

    @property
    def definition(self) -> Optional[WoundDefinition]:
        from corepatch.catalog import get_definition

        return get_definition(self.wound_id)

    @property
    def title(self) -> str:
        definition = self.definition
        return definition.title if definition else "Unknown Wound"

    @property
    def counter_belief(self) -> str:
        definition = self.definition
        return definition.counter_belief if definition else "No counter-belief available."
