"""Derived values over intervals.

The end of an interval is never stored. It is recomputed from
``(start_time, grid_unit, grid_amount)`` on every call so that an interval's
calendar shape survives moves across months and years of different lengths.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from typing import Any

from timegrid.intervals.calendar_math import DEFAULT_CALENDAR, CalendarArithmetic
from timegrid.intervals.models import GridSettings, Interval, clamp_grid_amount, copy_metadata, normalize_grid_unit


def end_time(interval: Interval, calendar: CalendarArithmetic = DEFAULT_CALENDAR) -> int:
    return calendar.advance(interval.start_time, interval.grid_unit, interval.grid_amount)


def duration(interval: Interval, calendar: CalendarArithmetic = DEFAULT_CALENDAR) -> int:
    return end_time(interval, calendar) - interval.start_time


def ranges_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and end_a > start_b


def intervals_overlap(first: Interval, second: Interval, calendar: CalendarArithmetic = DEFAULT_CALENDAR) -> bool:
    return ranges_overlap(
        first.start_time,
        end_time(first, calendar),
        second.start_time,
        end_time(second, calendar),
    )


def move_interval_to(interval: Interval, new_start: int) -> Interval:
    """Return a copy starting at ``new_start`` with the same unit and amount."""
    return replace(interval, start_time=int(new_start))


def resize_interval(interval: Interval, new_amount: float) -> Interval:
    return replace(interval, grid_amount=clamp_grid_amount(new_amount))


def to_legacy_record(interval: Interval, calendar: CalendarArithmetic = DEFAULT_CALENDAR) -> dict[str, Any]:
    return {
        "id": interval.interval_id,
        "startTime": interval.start_time,
        "endTime": end_time(interval, calendar),
        "metadata": copy_metadata(interval.metadata),
    }


def from_legacy_span(
    interval_id: str,
    start_time: int,
    legacy_end_time: int,
    settings: GridSettings,
    metadata: dict[str, Any] | None = None,
    layer_id: str | None = None,
    calendar: CalendarArithmetic = DEFAULT_CALENDAR,
) -> Interval:
    """Convert an explicit ``[start, end)`` record into grid-unit form.

    The span is measured in the grid unit and rounded, so a 31-day July record
    on a month grid becomes one month.
    """
    unit = normalize_grid_unit(settings.unit)
    amount = calendar.difference(int(start_time), int(legacy_end_time), unit)
    return Interval(
        interval_id=interval_id,
        start_time=int(start_time),
        grid_unit=unit,
        grid_amount=clamp_grid_amount(amount),
        metadata=copy_metadata(metadata),
        layer_id=layer_id,
    )


def duration_text(start_time: int, stop_time: int) -> str:
    span = timedelta(milliseconds=max(stop_time - start_time, 0))
    seconds = span.total_seconds()
    if seconds >= 86_400:
        return f"{round(seconds / 86_400)} days"
    if seconds >= 3_600:
        return f"{round(seconds / 3_600)} hours"
    if seconds >= 60:
        return f"{round(seconds / 60)} minutes"
    return f"{round(seconds)} seconds"


def format_timestamp(
    timestamp: int,
    fmt: str = "%Y-%m-%d %H:%M",
    calendar: CalendarArithmetic = DEFAULT_CALENDAR,
) -> str:
    return calendar.to_datetime(timestamp).strftime(fmt)
