"""Program progress: day numbering and activity aggregation."""

from corepatch.progress.days import (
    date_for_day,
    day_for_date,
    day_number,
    is_current_day,
    program_start,
    skip_to_day,
)
from corepatch.progress.activity import (
    Activity,
    GridCell,
    color_level,
    day_counts,
    grid_weeks,
    load_activity,
    recap_message,
    timeline,
    window_bounds,
    yesterday_count,
)

__all__ = [
    "date_for_day",
    "day_for_date",
    "day_number",
    "is_current_day",
    "program_start",
    "skip_to_day",
    "Activity",
    "GridCell",
    "color_level",
    "day_counts",
    "grid_weeks",
    "load_activity",
    "recap_message",
    "timeline",
    "window_bounds",
    "yesterday_count",
]
