"""Interval domain models."""

from __future__ import annotations

import math
from copy import deepcopy
from dataclasses import dataclass, field, replace
from typing import Any, Literal
from uuid import uuid4

GridUnit = Literal["day", "month", "year"]

SUPPORTED_GRID_UNITS: tuple[GridUnit, ...] = ("day", "month", "year")

GRID_UNIT_LABELS: dict[GridUnit, str] = {
    "day": "Day(s)",
    "month": "Month(s)",
    "year": "Year(s)",
}

GRID_VALUE_LIMITS: dict[GridUnit, tuple[int, int]] = {
    "day": (1, 365),
    "month": (1, 12),
    "year": (1, 10),
}

DAY_MS = 24 * 60 * 60 * 1000


def is_valid_grid_unit(value: str) -> bool:
    return value in SUPPORTED_GRID_UNITS


def normalize_grid_unit(unit: str) -> GridUnit:
    if unit in SUPPORTED_GRID_UNITS:
        return unit  # type: ignore[return-value]
    raise ValueError(f"Unsupported grid unit '{unit}'")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_grid_amount(amount: float) -> int:
    return max(1, round_half_up(amount))


@dataclass(slots=True, frozen=True)
class GridSettings:
    unit: GridUnit = "month"
    value: int = 1

    def validate(self) -> None:
        if self.unit not in SUPPORTED_GRID_UNITS:
            raise ValueError(f"Unsupported grid unit '{self.unit}'")
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("grid value must be an integer")
        low, high = GRID_VALUE_LIMITS[self.unit]
        if not (low <= self.value <= high):
            raise ValueError(f"grid value for '{self.unit}' must be in range [{low},{high}]")

    def label(self) -> str:
        return f"{self.value} {GRID_UNIT_LABELS[self.unit]}"


DEFAULT_GRID_SETTINGS = GridSettings(unit="month", value=1)


@dataclass(slots=True)
class Interval:
    interval_id: str
    start_time: int
    grid_unit: GridUnit
    grid_amount: int
    metadata: dict[str, Any] = field(default_factory=dict)
    layer_id: str | None = None

    def validate(self) -> None:
        if not self.interval_id:
            raise ValueError("interval_id must be non-empty")
        if isinstance(self.start_time, bool) or not isinstance(self.start_time, int):
            raise ValueError("start_time must be integer milliseconds")
        if self.start_time < 0:
            raise ValueError("start_time must be >= 0")
        if self.grid_unit not in SUPPORTED_GRID_UNITS:
            raise ValueError(f"Unsupported grid unit '{self.grid_unit}'")
        if isinstance(self.grid_amount, bool) or not isinstance(self.grid_amount, int):
            raise ValueError("grid_amount must be an integer")
        if self.grid_amount < 1:
            raise ValueError("grid_amount must be >= 1")

    def clone(self, fresh_id: bool = True) -> Interval:
        return replace(
            self,
            interval_id=str(uuid4()) if fresh_id else self.interval_id,
            metadata=copy_metadata(self.metadata),
        )

    @staticmethod
    def new(
        start_time: int,
        grid_unit: GridUnit,
        grid_amount: int,
        metadata: dict[str, Any] | None = None,
        layer_id: str | None = None,
    ) -> Interval:
        return Interval(
            interval_id=str(uuid4()),
            start_time=int(start_time),
            grid_unit=normalize_grid_unit(grid_unit),
            grid_amount=max(1, int(grid_amount)),
            metadata=copy_metadata(metadata or {}),
            layer_id=layer_id,
        )


def copy_metadata(metadata: dict[str, Any] | None) -> dict[str, Any]:
    return deepcopy(dict(metadata or {}))
