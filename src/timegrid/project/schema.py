"""Timeline document schema, format version 2."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from timegrid.intervals.models import GridSettings, GridUnit, Interval, copy_metadata

CURRENT_FORMAT_VERSION = 2


class TimelineMeta(BaseModel):
    title: str = "Untitled"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GridSettingsRecord(BaseModel):
    unit: GridUnit = "month"
    value: int = Field(default=1, ge=1)

    def to_settings(self) -> GridSettings:
        settings = GridSettings(unit=self.unit, value=self.value)
        settings.validate()
        return settings

    @classmethod
    def from_settings(cls, settings: GridSettings) -> GridSettingsRecord:
        return cls(unit=settings.unit, value=settings.value)


class IntervalRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    startTime: int = Field(ge=0)
    gridUnit: GridUnit
    gridAmount: int = Field(ge=1)
    metadata: dict[str, Any] = Field(default_factory=dict)
    layerId: str | None = None

    def to_interval(self) -> Interval:
        return Interval(
            interval_id=self.id,
            start_time=self.startTime,
            grid_unit=self.gridUnit,
            grid_amount=self.gridAmount,
            metadata=copy_metadata(self.metadata),
            layer_id=self.layerId,
        )

    @classmethod
    def from_interval(cls, interval: Interval) -> IntervalRecord:
        return cls(
            id=interval.interval_id,
            startTime=interval.start_time,
            gridUnit=interval.grid_unit,
            gridAmount=interval.grid_amount,
            metadata=copy_metadata(interval.metadata),
            layerId=interval.layer_id,
        )


class TimelineDocumentV2(BaseModel):
    model_config = ConfigDict(extra="allow")

    format_version: int = CURRENT_FORMAT_VERSION
    meta: TimelineMeta = Field(default_factory=TimelineMeta)
    grid_settings: GridSettingsRecord = Field(default_factory=GridSettingsRecord)
    intervals: list[IntervalRecord] = Field(default_factory=list)
    history: list[dict[str, Any]] = Field(default_factory=list)
