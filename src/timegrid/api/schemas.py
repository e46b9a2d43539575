"""FastAPI request/response schemas."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

GridUnitName = Literal["day", "month", "year"]


class IntervalCreateRequest(BaseModel):
    start_time: int = Field(ge=0)
    grid_unit: GridUnitName
    grid_amount: int = Field(default=1, ge=1)
    metadata: dict[str, Any] = Field(default_factory=dict)
    layer_id: str | None = None


class IntervalUpdateRequest(BaseModel):
    start_time: int | None = Field(default=None, ge=0)
    grid_unit: GridUnitName | None = None
    grid_amount: int | None = Field(default=None, ge=1)
    metadata: dict[str, Any] | None = None
    layer_id: str | None = None


class IntervalResponse(BaseModel):
    id: str
    start_time: int
    grid_unit: str
    grid_amount: int
    end_time: int
    duration_ms: int
    duration_text: str
    metadata: dict[str, Any]
    layer_id: str | None = None


class IntervalListResponse(BaseModel):
    intervals: list[IntervalResponse]
    selection: list[str]


class OverlapQueryRequest(BaseModel):
    start_time: int = Field(ge=0)
    grid_unit: GridUnitName
    grid_amount: int = Field(default=1, ge=1)
    exclude_id: str | None = None
    layer_id: str | None = None


class OverlapQueryResponse(BaseModel):
    overlaps: bool


class SelectionRequest(BaseModel):
    interval_ids: list[str] = Field(default_factory=list)


class SelectionResponse(BaseModel):
    interval_ids: list[str]


class ScaleRequest(BaseModel):
    factor: float = Field(gt=0)


class BatchResponse(BaseModel):
    operation: str
    affected: int
    created_ids: list[str] = Field(default_factory=list)
    selection: list[str] = Field(default_factory=list)


class GridSettingsPayload(BaseModel):
    unit: GridUnitName
    value: int = Field(ge=1)


class GridSettingsResponse(BaseModel):
    unit: str
    value: int
    label: str


class GridLineItem(BaseModel):
    timestamp: int
    position: float
    is_major: bool
    label: str


class GridLinesResponse(BaseModel):
    unit: str
    value: int
    lines: list[GridLineItem]


class DocumentImportResponse(BaseModel):
    imported: int
    warnings: list[str]
