"""Calendar arithmetic over millisecond timestamps in a single display zone.

Day steps are fixed 24h durations so the day grid stays linear in pixel space.
Month and year steps shift the calendar with ``relativedelta``: the wall-clock
time is kept and the day-of-month is clamped to the target month
(Jan 31 + 1 month -> Feb 28/29). The two are deliberately not interchangeable.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from dateutil import tz as dateutil_tz
from dateutil.relativedelta import relativedelta

from timegrid.intervals.models import DAY_MS, GridUnit, round_half_up

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def resolve_zone(zone: tzinfo | str | None) -> tzinfo:
    if zone is None:
        return dateutil_tz.UTC
    if isinstance(zone, str):
        resolved = dateutil_tz.gettz(zone.strip() or "UTC")
        if resolved is None:
            raise ValueError(f"Unknown time zone '{zone}'")
        return resolved
    return zone


class CalendarArithmetic:
    def __init__(self, zone: tzinfo | str | None = None) -> None:
        self._zone = resolve_zone(zone)

    @property
    def zone(self) -> tzinfo:
        return self._zone

    def to_datetime(self, timestamp: int | float) -> datetime:
        return (EPOCH + timedelta(milliseconds=timestamp)).astimezone(self._zone)

    def to_millis(self, value: datetime) -> int:
        if value.tzinfo is None:
            value = value.replace(tzinfo=self._zone)
        return (value - EPOCH) // _ONE_MS

    def advance(self, timestamp: int, unit: GridUnit, amount: int) -> int:
        unit = _check_unit(unit)
        if unit == "day":
            return round_half_up(timestamp + amount * DAY_MS)
        if int(amount) != amount:
            raise ValueError(f"calendar shift by '{unit}' needs a whole amount, got {amount}")
        if unit == "month":
            delta = relativedelta(months=int(amount))
        else:
            delta = relativedelta(years=int(amount))
        return self.to_millis(self.to_datetime(timestamp) + delta)

    def advance_fractional(self, timestamp: int, unit: GridUnit, amount: float) -> int:
        """Advance by whole units, then interpolate the remainder across the next cell."""
        whole = math.floor(amount)
        fraction = amount - whole
        base = self.advance(timestamp, unit, whole)
        if fraction == 0:
            return base
        following = self.advance(timestamp, unit, whole + 1)
        return base + round_half_up(fraction * (following - base))

    def difference(self, start: int, end: int, unit: GridUnit) -> float:
        """Fractional count of ``unit`` from ``start`` to ``end`` (negative when end < start)."""
        unit = _check_unit(unit)
        if unit == "day":
            return (end - start) / DAY_MS

        months_per_step = 1 if unit == "month" else 12
        delta = relativedelta(self.to_datetime(end), self.to_datetime(start))
        whole = int((delta.years * 12 + delta.months) / months_per_step)
        base = self.advance(start, unit, whole)
        direction = 1 if end >= base else -1
        following = self.advance(start, unit, whole + direction)
        if following == base:
            return float(whole)
        return whole + direction * (end - base) / (following - base)

    def start_of_unit(self, timestamp: int, unit: GridUnit) -> int:
        unit = _check_unit(unit)
        value = self.to_datetime(timestamp).replace(hour=0, minute=0, second=0, microsecond=0, fold=0)
        if unit == "month":
            value = value.replace(day=1)
        elif unit == "year":
            value = value.replace(month=1, day=1)
        return self.to_millis(value)

    def unit_index(self, timestamp: int, unit: GridUnit) -> int:
        """Whole-unit position counted from the calendar origin of ``unit``."""
        unit = _check_unit(unit)
        value = self.to_datetime(timestamp)
        if unit == "day":
            return value.date().toordinal()
        if unit == "month":
            return value.year * 12 + value.month - 1
        return value.year

    def unit_start(self, index: int, unit: GridUnit) -> int:
        unit = _check_unit(unit)
        if unit == "day":
            value = datetime.combine(date.fromordinal(index), time(), tzinfo=self._zone)
        elif unit == "month":
            value = datetime(index // 12, index % 12 + 1, 1, tzinfo=self._zone)
        else:
            value = datetime(index, 1, 1, tzinfo=self._zone)
        return self.to_millis(value)

    def milliseconds_per_cell(self, unit: GridUnit, value: int, reference: int) -> int:
        unit = _check_unit(unit)
        if unit == "day":
            return value * DAY_MS
        return self.advance(reference, unit, value) - reference


def _check_unit(unit: str) -> GridUnit:
    if unit not in ("day", "month", "year"):
        raise ValueError(f"Unsupported grid unit '{unit}'")
    return unit  # type: ignore[return-value]


DEFAULT_CALENDAR = CalendarArithmetic()
