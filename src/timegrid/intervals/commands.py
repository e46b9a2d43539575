"""Commands emitted by gestures and batch transforms, applied by the editor service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from timegrid.intervals.models import GridUnit


@dataclass(slots=True, frozen=True)
class CreateIntervalCommand:
    start_time: int
    grid_unit: GridUnit
    grid_amount: int
    metadata: dict[str, Any] = field(default_factory=dict)
    layer_id: str | None = None
    interval_id: str | None = None


@dataclass(slots=True, frozen=True)
class UpdateIntervalCommand:
    interval_id: str
    start_time: int | None = None
    grid_amount: int | None = None

    def changes(self) -> dict[str, int]:
        updates: dict[str, int] = {}
        if self.start_time is not None:
            updates["start_time"] = self.start_time
        if self.grid_amount is not None:
            updates["grid_amount"] = self.grid_amount
        return updates


@dataclass(slots=True, frozen=True)
class DeleteIntervalCommand:
    interval_id: str


IntervalCommand = CreateIntervalCommand | UpdateIntervalCommand | DeleteIntervalCommand
