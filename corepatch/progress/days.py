"""Program day numbering.

Day 1 is the calendar day of the earliest entry stored for a wound; every
following calendar day adds one. The counter never drops below 1.
"""

import logging
import sqlite3
from datetime import date, timedelta
from typing import Optional

from corepatch.catalog import PROGRAM_LENGTH
from corepatch.db.store import DataStore, midnight
from corepatch.models import CoreWoundID, Entry

logger = logging.getLogger(__name__)


def program_start(store: DataStore, wound_id: Optional[CoreWoundID]) -> Optional[date]:
    """Calendar day of the earliest entry for a wound, or None."""
    if wound_id is None:
        return None
    first = store.get_first_entry(wound_id)
    return first.day if first else None


def day_for_date(start: date, day: date) -> int:
    """Program day number of ``day`` for a program starting on ``start``."""
    return max(1, (day - start).days + 1)


def date_for_day(start: date, number: int) -> date:
    """Calendar day of program day ``number``."""
    if number < 1:
        raise ValueError(f"Day number must be >= 1, got {number}")
    return start + timedelta(days=number - 1)


def day_number(
    store: DataStore,
    wound_id: Optional[CoreWoundID],
    today: Optional[date] = None,
) -> int:
    """Current program day for a wound.

    Args:
        store: Data store to query.
        wound_id: Active wound, or None if no wound is selected.
        today: Override for the current date.

    Returns:
        The day number, 1 when there are no entries or storage fails.
    """
    today = today or date.today()
    try:
        start = program_start(store, wound_id)
    except sqlite3.Error as e:
        logger.error("Could not read first entry, defaulting to day 1: %s", e)
        return 1
    if start is None:
        return 1
    return day_for_date(start, today)


def is_current_day(
    store: DataStore,
    wound_id: Optional[CoreWoundID],
    number: int,
    today: Optional[date] = None,
) -> bool:
    """Whether program day ``number`` is the current, editable day.

    Earlier days can be viewed or resumed but are never auto-created.
    """
    return number == day_number(store, wound_id, today)


def skip_to_day(
    store: DataStore,
    wound_id: CoreWoundID,
    number: int,
    today: Optional[date] = None,
) -> list[Entry]:
    """Seed empty entries so that today becomes program day ``number``.

    Args:
        store: Data store to write to.
        wound_id: Wound program to seed.
        number: Target day number, 1..PROGRAM_LENGTH.
        today: Override for the current date.

    Returns:
        The entries that were created.

    Raises:
        ValueError: If the number is out of range or behind the current day.
    """
    today = today or date.today()
    if not 1 <= number <= PROGRAM_LENGTH:
        raise ValueError(f"Day must be between 1 and {PROGRAM_LENGTH}, got {number}")

    current = day_number(store, wound_id, today)
    if number < current:
        raise ValueError(f"Already on day {current}, cannot go back to day {number}")

    created = []
    first_day = today - timedelta(days=number - 1)
    for offset in range(number):
        day = first_day + timedelta(days=offset)
        if store.get_entry_for_day(wound_id, day) is None:
            entry = Entry(wound_id=wound_id, created_at=midnight(day))
            store.save_entry(entry)
            created.append(entry)

    logger.info("Seeded %d entries to reach day %d", len(created), number)
    return created
