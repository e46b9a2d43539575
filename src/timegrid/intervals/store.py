"""Id-keyed interval collection backing the editor."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable
from uuid import uuid4

from timegrid.intervals.calendar_math import DEFAULT_CALENDAR, CalendarArithmetic
from timegrid.intervals.models import GridUnit, Interval, clamp_grid_amount, copy_metadata, normalize_grid_unit
from timegrid.intervals.spans import end_time, ranges_overlap

UPDATABLE_FIELDS = frozenset({"start_time", "grid_unit", "grid_amount", "metadata", "layer_id"})


class IntervalStore:
    def __init__(self, calendar: CalendarArithmetic | None = None) -> None:
        self.calendar = calendar or DEFAULT_CALENDAR
        self.intervals: dict[str, Interval] = {}

    def __len__(self) -> int:
        return len(self.intervals)

    def __contains__(self, interval_id: object) -> bool:
        return interval_id in self.intervals

    def add(self, interval: Interval) -> Interval:
        interval.validate()
        if interval.interval_id in self.intervals:
            raise ValueError(f"interval '{interval.interval_id}' already exists")
        self.intervals[interval.interval_id] = interval
        return interval

    def create(
        self,
        start_time: int,
        grid_unit: GridUnit,
        grid_amount: int,
        metadata: dict[str, Any] | None = None,
        layer_id: str | None = None,
        interval_id: str | None = None,
    ) -> Interval:
        if interval_id is None or interval_id in self.intervals:
            interval_id = str(uuid4())
        interval = Interval(
            interval_id=interval_id,
            start_time=int(start_time),
            grid_unit=normalize_grid_unit(grid_unit),
            grid_amount=clamp_grid_amount(grid_amount),
            metadata=copy_metadata(metadata),
            layer_id=layer_id,
        )
        return self.add(interval)

    def get(self, interval_id: str) -> Interval | None:
        return self.intervals.get(interval_id)

    def require(self, interval_id: str) -> Interval:
        interval = self.intervals.get(interval_id)
        if interval is None:
            raise KeyError(f"interval '{interval_id}' not found")
        return interval

    def update(self, interval_id: str, /, **fields: Any) -> Interval:
        current = self.require(interval_id)
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update fields {sorted(unknown)}")
        if "grid_amount" in fields:
            fields["grid_amount"] = clamp_grid_amount(fields["grid_amount"])
        if "start_time" in fields:
            fields["start_time"] = int(fields["start_time"])
        if "metadata" in fields:
            fields["metadata"] = copy_metadata(fields["metadata"])
        updated = replace(current, **fields)
        updated.validate()
        self.intervals[interval_id] = updated
        return updated

    def remove(self, interval_id: str) -> Interval:
        self.require(interval_id)
        return self.intervals.pop(interval_id)

    def clear(self) -> None:
        self.intervals.clear()

    def replace_all(self, intervals: Iterable[Interval]) -> None:
        staged: dict[str, Interval] = {}
        for interval in intervals:
            interval.validate()
            staged[interval.interval_id] = interval
        self.intervals = staged

    def intervals_in_order(self) -> list[Interval]:
        return list(self.intervals.values())

    def ids(self) -> set[str]:
        return set(self.intervals)

    def end_time(self, interval: Interval) -> int:
        return end_time(interval, self.calendar)

    def for_layer(self, layer_id: str | None) -> list[Interval]:
        return [interval for interval in self.intervals.values() if interval.layer_id == layer_id]

    def in_range(self, start_time: int, stop_time: int) -> list[Interval]:
        """Intervals whose ``[start, end)`` intersects ``[start_time, stop_time)``."""
        low, high = sorted((start_time, stop_time))
        return [
            interval
            for interval in self.intervals.values()
            if ranges_overlap(interval.start_time, self.end_time(interval), low, high)
        ]

    def find_overlapping(
        self,
        start_time: int,
        grid_unit: GridUnit,
        grid_amount: int,
        exclude_ids: Iterable[str] = (),
        layer_id: str | None = None,
    ) -> list[Interval]:
        stop_time = self.calendar.advance(start_time, grid_unit, clamp_grid_amount(grid_amount))
        excluded = set(exclude_ids)
        return [
            interval
            for interval in self.intervals.values()
            if interval.interval_id not in excluded
            and interval.layer_id == layer_id
            and ranges_overlap(start_time, stop_time, interval.start_time, self.end_time(interval))
        ]

    def overlaps(
        self,
        start_time: int,
        grid_unit: GridUnit,
        grid_amount: int,
        exclude_ids: Iterable[str] = (),
        layer_id: str | None = None,
    ) -> bool:
        return bool(self.find_overlapping(start_time, grid_unit, grid_amount, exclude_ids, layer_id))
