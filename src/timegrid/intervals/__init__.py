"""Interval domain exports."""

from timegrid.intervals.batch import BatchTransformEngine
from timegrid.intervals.calendar_math import DEFAULT_CALENDAR, CalendarArithmetic, resolve_zone
from timegrid.intervals.commands import (
    CreateIntervalCommand,
    DeleteIntervalCommand,
    IntervalCommand,
    UpdateIntervalCommand,
)
from timegrid.intervals.models import (
    DEFAULT_GRID_SETTINGS,
    SUPPORTED_GRID_UNITS,
    GridSettings,
    GridUnit,
    Interval,
    round_half_up,
)
from timegrid.intervals.snapping import nearest_boundary, next_boundary, snap
from timegrid.intervals.spans import duration, end_time, intervals_overlap, move_interval_to, resize_interval
from timegrid.intervals.store import IntervalStore

__all__ = [
    "BatchTransformEngine",
    "CalendarArithmetic",
    "CreateIntervalCommand",
    "DEFAULT_CALENDAR",
    "DEFAULT_GRID_SETTINGS",
    "DeleteIntervalCommand",
    "GridSettings",
    "GridUnit",
    "Interval",
    "IntervalCommand",
    "IntervalStore",
    "SUPPORTED_GRID_UNITS",
    "UpdateIntervalCommand",
    "duration",
    "end_time",
    "intervals_overlap",
    "move_interval_to",
    "nearest_boundary",
    "next_boundary",
    "resize_interval",
    "resolve_zone",
    "round_half_up",
    "snap",
]
