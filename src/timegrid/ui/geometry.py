"""Pixel geometry of the calendar grid for timeline rendering and hit testing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Sequence

from timegrid.intervals.calendar_math import DEFAULT_CALENDAR, CalendarArithmetic
from timegrid.intervals.models import DAY_MS, GridSettings, Interval
from timegrid.intervals.snapping import snap
from timegrid.intervals.spans import duration

MAX_GRID_LINES = 1000
MIN_INTERVAL_WIDTH_PX = 20.0
DEFAULT_PIXELS_PER_CELL = 100.0

GRID_LINE_LABEL_FORMATS = {
    "day": "%b %d",
    "month": "%b %Y",
    "year": "%Y",
}


@dataclass(slots=True, frozen=True)
class TimelineBounds:
    min_date: int
    max_date: int

    def validate(self) -> None:
        if self.min_date >= self.max_date:
            raise ValueError("min_date must be earlier than max_date")

    @staticmethod
    def around(now_ms: int, days: int = 365) -> TimelineBounds:
        return TimelineBounds(min_date=now_ms - days * DAY_MS, max_date=now_ms + days * DAY_MS)


@dataclass(slots=True, frozen=True)
class GridLine:
    timestamp: int
    position: float
    is_major: bool
    label: str


class HitRegion(str, Enum):
    BODY = "body"
    START_HANDLE = "start_handle"
    END_HANDLE = "end_handle"


@dataclass(slots=True, frozen=True)
class HitResult:
    interval_id: str
    region: HitRegion


def now_millis() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


class GridGeometry:
    """Linear timestamp <-> pixel mapping for one viewport and grid setting.

    The millisecond width of a cell is measured from a single reference instant
    so the whole viewport shares one scale, even though real months and years
    differ in length.
    """

    def __init__(
        self,
        bounds: TimelineBounds,
        settings: GridSettings,
        base_pixels_per_cell: float = DEFAULT_PIXELS_PER_CELL,
        reference_ms: int | None = None,
        calendar: CalendarArithmetic | None = None,
    ) -> None:
        bounds.validate()
        if base_pixels_per_cell <= 0:
            raise ValueError("base_pixels_per_cell must be positive")
        self.bounds = bounds
        self.settings = settings
        self.base_pixels_per_cell = float(base_pixels_per_cell)
        self.calendar = calendar or DEFAULT_CALENDAR
        self.reference_ms = now_millis() if reference_ms is None else int(reference_ms)
        self.ms_per_cell = self.calendar.milliseconds_per_cell(
            settings.unit,
            max(settings.value, 1),
            self.reference_ms,
        )
        self.pixels_per_ms = self.base_pixels_per_cell / self.ms_per_cell

    @classmethod
    def fit_to_width(
        cls,
        bounds: TimelineBounds,
        settings: GridSettings,
        width_px: float,
        reference_ms: int | None = None,
        calendar: CalendarArithmetic | None = None,
    ) -> GridGeometry:
        bounds.validate()
        if width_px <= 0:
            raise ValueError("width_px must be positive")
        calendar = calendar or DEFAULT_CALENDAR
        reference = now_millis() if reference_ms is None else int(reference_ms)
        ms_per_cell = calendar.milliseconds_per_cell(settings.unit, max(settings.value, 1), reference)
        base = width_px * ms_per_cell / (bounds.max_date - bounds.min_date)
        return cls(bounds, settings, base_pixels_per_cell=base, reference_ms=reference, calendar=calendar)

    def with_settings(self, settings: GridSettings) -> GridGeometry:
        return GridGeometry(self.bounds, settings, self.base_pixels_per_cell, self.reference_ms, self.calendar)

    def with_bounds(self, bounds: TimelineBounds) -> GridGeometry:
        return GridGeometry(bounds, self.settings, self.base_pixels_per_cell, self.reference_ms, self.calendar)

    @property
    def cell_width(self) -> float:
        return self.base_pixels_per_cell

    @property
    def total_width(self) -> float:
        return (self.bounds.max_date - self.bounds.min_date) * self.pixels_per_ms

    def time_to_pixels(self, timestamp: float) -> float:
        return (timestamp - self.bounds.min_date) * self.pixels_per_ms

    def pixels_to_time(self, x: float) -> float:
        return self.bounds.min_date + x / self.pixels_per_ms

    def pixel_delta_to_time(self, dx: float) -> float:
        return dx / self.pixels_per_ms

    def grid_lines(self) -> list[GridLine]:
        unit = self.settings.unit
        label_format = GRID_LINE_LABEL_FORMATS[unit]
        lines: list[GridLine] = []
        current = snap(self.bounds.min_date, self.settings, self.calendar)
        while current <= self.bounds.max_date and len(lines) < MAX_GRID_LINES:
            moment = self.calendar.to_datetime(current)
            if unit == "day":
                is_major = moment.day == 1
            elif unit == "month":
                is_major = moment.month == 1
            else:
                is_major = True
            lines.append(
                GridLine(
                    timestamp=current,
                    position=self.time_to_pixels(current),
                    is_major=is_major,
                    label=moment.strftime(label_format),
                )
            )
            following = self.calendar.advance(current, unit, self.settings.value)
            if following <= current:
                break
            current = following
        return lines

    def interval_span(self, interval: Interval) -> tuple[float, float]:
        left = self.time_to_pixels(interval.start_time)
        width = duration(interval, self.calendar) * self.pixels_per_ms
        return left, max(width, MIN_INTERVAL_WIDTH_PX)

    def hit_test(self, x: float, intervals: Sequence[Interval], handle_width: float = 8.0) -> HitResult | None:
        for interval in reversed(intervals):
            left, width = self.interval_span(interval)
            right = left + width
            if not (left <= x <= right):
                continue
            handle = min(handle_width, width / 3.0)
            if x < left + handle:
                return HitResult(interval.interval_id, HitRegion.START_HANDLE)
            if x > right - handle:
                return HitResult(interval.interval_id, HitRegion.END_HANDLE)
            return HitResult(interval.interval_id, HitRegion.BODY)
        return None
