from typing import Iterable, List, Optional, Set
from datetime import date

from freetime.schemas.schedule import FreeSlot, FreeSlotView, FreeDay, TimeInterval
from freetime.utils.intervals import (
    DAYS_IN_WEEK, MINUTES_PER_DAY, DAY_NAMES,
    to_absolute_minute, from_absolute_minute, format_time, date_for_day
)

MIN_FREE_SLOT_MINUTES = 30

def _busy_minutes(blocks: Iterable[TimeInterval], day: int) -> Set[int]:
    busy: Set[int] = set()
    for block in blocks:
        if block.day != day:
            continue
        start = to_absolute_minute(block.startHour, block.startMinute)
        end = to_absolute_minute(block.endHour, block.endMinute)
        busy.update(range(start, end))
    return busy

def _make_slot(day: int, start: int, last: int) -> FreeSlot:
    start_hour, start_minute = from_absolute_minute(start)
    end_hour, end_minute = from_absolute_minute(last)
    return FreeSlot(
        day=day,
        startHour=start_hour,
        startMinute=start_minute,
        endHour=end_hour,
        endMinute=end_minute,
    )

def calculate_common_free_slots(
    blocks: Iterable[TimeInterval],
    week_start: Optional[date] = None
) -> List[FreeSlot]:
    """
    Calculate the time windows when nobody in the group is busy.

    A minute is busy if any block from any member covers it. Each day is swept
    minute by minute and every free run of at least 30 minutes becomes a slot
    whose end is the last free minute (so a run ending where a 10:00 block
    starts is reported as ending at 9:59). A run still open at midnight is
    closed at 23:59 of the same day.

    `week_start` is accepted for symmetry with the block queries; blocks are
    week-independent so it never changes the result.

    An equivalent formulation without the per-minute sweep: sort the day's
    [start, end) intervals, merge overlapping or touching ones, then emit the
    gaps between merged intervals (plus the leading gap from 0 and the
    trailing gap to 1440) whose length is at least 30, reporting each gap as
    [gap_start, gap_end - 1] and clamping the trailing one to 1439. Any
    replacement must keep those exact boundaries.
    """
    blocks = list(blocks)
    free_slots: List[FreeSlot] = []

    for day in range(DAYS_IN_WEEK):
        busy = _busy_minutes(blocks, day)
        run_start: Optional[int] = None

        for minute in range(MINUTES_PER_DAY):
            if minute not in busy:
                if run_start is None:
                    run_start = minute
            elif run_start is not None:
                if minute - run_start >= MIN_FREE_SLOT_MINUTES:
                    free_slots.append(_make_slot(day, run_start, minute - 1))
                run_start = None

        # Free through the end of the day
        if run_start is not None and MINUTES_PER_DAY - run_start >= MIN_FREE_SLOT_MINUTES:
            free_slots.append(_make_slot(day, run_start, MINUTES_PER_DAY - 1))

    return free_slots

def format_free_slot(slot: TimeInterval) -> str:
    """Format a slot as 'H:MM AM - H:MM PM'."""
    return f"{format_time(slot.startHour, slot.startMinute)} - {format_time(slot.endHour, slot.endMinute)}"

def group_free_slots_by_day(
    slots: Iterable[FreeSlot],
    week_start: Optional[date] = None
) -> List[FreeDay]:
    """
    Group slots into days that have at least one slot, ordered by day and start time.

    When `week_start` (a Monday) is given each day carries its calendar date.
    """
    by_day = {}
    for slot in slots:
        by_day.setdefault(slot.day, []).append(slot)

    days: List[FreeDay] = []
    for day in sorted(by_day):
        day_slots = sorted(by_day[day], key=lambda s: to_absolute_minute(s.startHour, s.startMinute))
        days.append(FreeDay(
            day=day,
            dayName=DAY_NAMES[day],
            calendarDate=date_for_day(week_start, day) if week_start else None,
            slots=[FreeSlotView(**s.model_dump(), display=format_free_slot(s)) for s in day_slots]
        ))
    return days
