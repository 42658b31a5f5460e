"""
Minute-of-day arithmetic for the weekly grid.

Days run 0 (Monday) to 6 (Sunday). Within a day every time is addressed
by its absolute minute, 0 (00:00) to 1439 (23:59).
"""
from datetime import date, timedelta
from typing import Tuple

from freetime.core.errors import InvalidInterval

DAYS_IN_WEEK = 7
MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR
DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def to_absolute_minute(hour: int, minute: int) -> int:
    """
    Convert an hour/minute pair to minutes since midnight.

    Callers must pass hour in 0..23 and minute in 0..59; out-of-range values
    are not checked and produce meaningless orderings.
    """
    return hour * MINUTES_PER_HOUR + minute


def from_absolute_minute(value: int) -> Tuple[int, int]:
    """Convert minutes since midnight back to (hour, minute)."""
    return divmod(value, MINUTES_PER_HOUR)


def ensure_valid_interval(start_hour: int, start_minute: int, end_hour: int, end_minute: int) -> None:
    """Raise InvalidInterval unless the end falls strictly after the start."""
    start = to_absolute_minute(start_hour, start_minute)
    end = to_absolute_minute(end_hour, end_minute)
    if end <= start:
        raise InvalidInterval(
            f"End time {end_hour}:{end_minute:02d} must be after start time {start_hour}:{start_minute:02d}"
        )


def format_time(hour: int, minute: int) -> str:
    """Render a time on the 12-hour clock, e.g. 0:00 -> '12:00 AM', 13:30 -> '1:30 PM'."""
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"


def start_of_week(day: date) -> date:
    """Monday of the week containing `day`."""
    return day - timedelta(days=day.weekday())


def date_for_day(week_start: date, day: int) -> date:
    return week_start + timedelta(days=day)
