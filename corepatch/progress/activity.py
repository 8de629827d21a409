"""Activity aggregation for the contribution grid, recap and timeline."""

import logging
import sqlite3
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from corepatch.db.store import DataStore, midnight
from corepatch.models import Category, CoreWoundID, Entry

logger = logging.getLogger(__name__)

# Upper bound (inclusive) of completed categories for each grid color level
LEVEL_THRESHOLDS = (0, 1, 3, 5, 7)


class GridCell(BaseModel):
    """One square of the activity grid."""

    day: date = Field(..., description="Calendar day")
    count: int = Field(..., ge=0, le=len(Category), description="Completed categories")
    level: int = Field(..., ge=0, le=len(LEVEL_THRESHOLDS) - 1, description="Color level")
    is_future: bool = Field(default=False, description="Day is after today")
    is_today: bool = Field(default=False, description="Day is today")

    model_config = {"frozen": True}

    @property
    def is_tappable(self) -> bool:
        return not self.is_future


class Activity(BaseModel):
    """Completed-category counts for a window of days ending today."""

    today: date = Field(..., description="Last day of the window")
    weeks: int = Field(..., ge=1, description="Window length in weeks")
    counts: dict[date, int] = Field(default_factory=dict, description="Completed count per day")
    timeline: list[Entry] = Field(default_factory=list, description="One entry per day, newest first")

    model_config = {"frozen": True}

    def count_for(self, day: date) -> int:
        return self.counts.get(day, 0)

    @property
    def yesterday_count(self) -> int:
        return yesterday_count(self.counts, self.today)

    def grid(self) -> list[list[GridCell]]:
        return grid_weeks(self.weeks, self.counts, self.today)


def window_bounds(weeks: int, today: date) -> tuple[datetime, datetime]:
    """Creation-time bounds ``[start, end)`` for a ``weeks * 7`` day window."""
    if weeks < 1:
        raise ValueError(f"weeks must be >= 1, got {weeks}")
    oldest = today - timedelta(days=weeks * 7 - 1)
    return midnight(oldest), midnight(today + timedelta(days=1))


def day_counts(entries: Iterable[Entry]) -> dict[date, int]:
    """Map each calendar day to its number of completed categories.

    Duplicate records for the same day are merged by category, so a day never
    counts more than seven.
    """
    completed: dict[date, set[Category]] = {}
    for entry in entries:
        completed.setdefault(entry.day, set()).update(entry.completed_categories)
    return {day: len(categories) for day, categories in completed.items()}


def color_level(count: int) -> int:
    """Grid color level: 0, 1, 2-3, 4-5 and 6-7 completed map to 0..4."""
    for level, upper in enumerate(LEVEL_THRESHOLDS):
        if count <= upper:
            return level
    return len(LEVEL_THRESHOLDS) - 1


def grid_weeks(weeks: int, counts: dict[date, int], today: date) -> list[list[GridCell]]:
    """Lay out the grid column by column.

    Columns are Monday-started weeks, oldest on the left; the last column is
    the current week. Days after today are empty.
    """
    monday = today - timedelta(days=today.weekday())
    columns = []
    for week in reversed(range(weeks)):
        column = []
        for weekday in range(7):
            day = monday - timedelta(days=week * 7) + timedelta(days=weekday)
            is_future = day > today
            count = 0 if is_future else counts.get(day, 0)
            column.append(
                GridCell(
                    day=day,
                    count=count,
                    level=color_level(count),
                    is_future=is_future,
                    is_today=day == today,
                )
            )
        columns.append(column)
    return columns


def yesterday_count(counts: dict[date, int], today: date) -> int:
    return counts.get(today - timedelta(days=1), 0)


def recap_message(count: int) -> tuple[str, str]:
    """Headline and subtext for the yesterday recap."""
    if count <= 0:
        return "No patches logged", "Today's a fresh chance to rewire your brain."
    if count <= 3:
        return f"{count} patches logged", "Keep the momentum going."
    if count <= 6:
        return f"Great job: {count} patches logged", "Almost perfect, keep it up!"
    return "Perfect: You logged 7 patches!", "Amazing, do it again today!"


def timeline(entries: Iterable[Entry]) -> list[Entry]:
    """One entry per calendar day, in the order days are first seen.

    Among duplicates the oldest record wins, as in
    ``DataStore.get_entry_for_day``.
    """
    kept: dict[date, Entry] = {}
    for entry in entries:
        current = kept.get(entry.day)
        if current is not None:
            logger.warning("Duplicate entries for %s in timeline, using the oldest", entry.day)
            if entry.created_at >= current.created_at:
                continue
        kept[entry.day] = entry
    return list(kept.values())


def load_activity(
    store: DataStore,
    wound_id: Optional[CoreWoundID],
    weeks: int = 5,
    today: Optional[date] = None,
) -> Activity:
    """Fetch and aggregate the activity window for a wound.

    Storage failures are logged and produce an empty activity.

    Args:
        store: Data store to query.
        wound_id: Active wound, or None.
        weeks: Number of weeks in the window.
        today: Override for the current date.

    Returns:
        Aggregated activity.
    """
    today = today or date.today()
    empty = Activity(today=today, weeks=weeks)
    if wound_id is None:
        return empty

    start, end = window_bounds(weeks, today)
    try:
        entries = store.get_entries(wound_id, start=start, end=end, newest_first=True)
    except sqlite3.Error as e:
        logger.error("Could not load activity, showing an empty grid: %s", e)
        return empty

    return Activity(
        today=today,
        weeks=weeks,
        counts=day_counts(entries),
        timeline=timeline(entries),
    )
