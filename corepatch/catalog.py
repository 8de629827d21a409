"""Static catalog of core wound definitions."""

from typing import Optional

from corepatch.models.wound import CoreWoundID, WoundDefinition

PROGRAM_LENGTH = 21

WOUND_CATALOG: dict[CoreWoundID, WoundDefinition] = {
    d.id: d
    for d in [
        WoundDefinition(
            id=CoreWoundID.PEOPLE_ALWAYS_LEAVE_ME,
            title="People always leave me",
            description="Fear of abandonment in relationships",
            counter_belief="People choose to stay with me",
        ),
        WoundDefinition(
            id=CoreWoundID.SOMETHING_IS_WRONG_WITH_ME,
            title="Something is wrong with me",
            description="Feeling fundamentally flawed or broken",
            counter_belief="Something is right with me",
        ),
        WoundDefinition(
            id=CoreWoundID.IM_NOT_GOOD_ENOUGH,
            title="I'm not good enough",
            description="Persistent feeling of inadequacy despite achievements",
            counter_belief="I am good enough",
        ),
        WoundDefinition(
            id=CoreWoundID.I_CANT_TRUST_ANYONE,
            title="I can't trust anyone",
            description="Difficulty trusting others and being vulnerable",
            counter_belief="I can trust the right people",
        ),
        WoundDefinition(
            id=CoreWoundID.I_HAVE_NO_CONTROL,
            title="I have no control",
            description="Feeling powerless in life situations",
            counter_belief="I have influence over my life",
        ),
    ]
}


def get_definition(wound_id: Optional[CoreWoundID]) -> Optional[WoundDefinition]:
    """Look up a wound definition, or None for unknown/missing ids."""
    if wound_id is None:
        return None
    return WOUND_CATALOG.get(wound_id)


def counter_belief_for(wound_id: Optional[CoreWoundID]) -> str:
    """Counter-belief statement used in prompts; a dash when unknown."""
    definition = get_definition(wound_id)
    return definition.counter_belief if definition else "—"
