"""Snapping of raw timestamps to grid cell boundaries."""

from __future__ import annotations

from timegrid.intervals.calendar_math import DEFAULT_CALENDAR, CalendarArithmetic
from timegrid.intervals.models import GridSettings


def _aligned_index(timestamp: int, settings: GridSettings, calendar: CalendarArithmetic) -> int:
    index = calendar.unit_index(timestamp, settings.unit)
    return index - (index % max(settings.value, 1))


def snap(timestamp: int, settings: GridSettings, calendar: CalendarArithmetic = DEFAULT_CALENDAR) -> int:
    """Floor ``timestamp`` to the start of its enclosing grid cell.

    Cells span ``settings.value`` units and are aligned to the calendar origin
    of the unit, so a single-unit grid snaps to the start of the day, month or
    year that contains the timestamp.
    """
    return calendar.unit_start(_aligned_index(timestamp, settings, calendar), settings.unit)


def next_boundary(timestamp: int, settings: GridSettings, calendar: CalendarArithmetic = DEFAULT_CALENDAR) -> int:
    index = _aligned_index(timestamp, settings, calendar) + max(settings.value, 1)
    return calendar.unit_start(index, settings.unit)


def nearest_boundary(
    timestamp: int,
    settings: GridSettings,
    calendar: CalendarArithmetic = DEFAULT_CALENDAR,
) -> int:
    """Closest of the current and the next cell start; ties go to the earlier one."""
    lower = snap(timestamp, settings, calendar)
    upper = next_boundary(timestamp, settings, calendar)
    if timestamp - lower <= upper - timestamp:
        return lower
    return upper
