"""Contract-first API endpoints for the interval editor."""

from __future__ import annotations

from typing import Any

from fastapi import Body, FastAPI, HTTPException
from fastapi.responses import Response

from timegrid.api.schemas import (
    BatchResponse,
    DocumentImportResponse,
    GridLineItem,
    GridLinesResponse,
    GridSettingsPayload,
    GridSettingsResponse,
    IntervalCreateRequest,
    IntervalListResponse,
    IntervalResponse,
    IntervalUpdateRequest,
    OverlapQueryRequest,
    OverlapQueryResponse,
    ScaleRequest,
    SelectionRequest,
    SelectionResponse,
)
from timegrid.editor.service import IntervalEditorService
from timegrid.intervals.models import GridSettings, Interval
from timegrid.intervals.spans import duration, duration_text
from timegrid.ui.geometry import TimelineBounds

BATCH_OPERATIONS = ("copy", "paste", "duplicate", "double", "halve", "delete")


def create_app(service: IntervalEditorService | None = None) -> FastAPI:
    app = FastAPI(title="timegrid API", version="0.1.0")
    editor = service or IntervalEditorService()

    def to_response(interval: Interval) -> IntervalResponse:
        stop_time = editor.end_time(interval)
        return IntervalResponse(
            id=interval.interval_id,
            start_time=interval.start_time,
            grid_unit=interval.grid_unit,
            grid_amount=interval.grid_amount,
            end_time=stop_time,
            duration_ms=duration(interval, editor.calendar),
            duration_text=duration_text(interval.start_time, stop_time),
            metadata=dict(interval.metadata),
            layer_id=interval.layer_id,
        )

    def require_interval(interval_id: str) -> Interval:
        interval = editor.get_interval(interval_id)
        if interval is None:
            raise HTTPException(status_code=404, detail=f"interval '{interval_id}' not found")
        return interval

    def selection() -> list[str]:
        return sorted(editor.get_selection())

    @app.get("/")
    def root() -> dict[str, str]:
        return {
            "service": "timegrid API",
            "status": "ok",
            "docs": "/docs",
        }

    @app.get("/favicon.ico", include_in_schema=False)
    def favicon() -> Response:
        return Response(status_code=204)

    @app.get("/v1/intervals", response_model=IntervalListResponse)
    def list_intervals() -> IntervalListResponse:
        return IntervalListResponse(
            intervals=[to_response(interval) for interval in editor.list_intervals()],
            selection=selection(),
        )

    @app.post("/v1/intervals", response_model=IntervalResponse, status_code=201)
    def create_interval(payload: IntervalCreateRequest) -> IntervalResponse:
        if editor.settings.prevent_overlap and editor.query_overlaps(
            payload.start_time,
            payload.grid_unit,
            payload.grid_amount,
            layer_id=payload.layer_id,
        ):
            raise HTTPException(status_code=409, detail="interval overlaps an existing interval")
        try:
            interval_id = editor.create_interval(
                start_time=payload.start_time,
                grid_unit=payload.grid_unit,
                grid_amount=payload.grid_amount,
                metadata=payload.metadata,
                layer_id=payload.layer_id,
            )
        except (KeyError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return to_response(require_interval(interval_id))

    @app.get("/v1/intervals/{interval_id}", response_model=IntervalResponse)
    def get_interval(interval_id: str) -> IntervalResponse:
        return to_response(require_interval(interval_id))

    @app.patch("/v1/intervals/{interval_id}", response_model=IntervalResponse)
    def update_interval(interval_id: str, payload: IntervalUpdateRequest) -> IntervalResponse:
        current = require_interval(interval_id)
        fields = {
            name: value
            for name, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or name == "layer_id"
        }
        if editor.settings.prevent_overlap and editor.query_overlaps(
            fields.get("start_time", current.start_time),
            fields.get("grid_unit", current.grid_unit),
            fields.get("grid_amount", current.grid_amount),
            exclude_id=interval_id,
            layer_id=fields.get("layer_id", current.layer_id),
        ):
            raise HTTPException(status_code=409, detail="interval overlaps an existing interval")
        try:
            editor.update_interval(interval_id, **fields)
        except (KeyError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return to_response(require_interval(interval_id))

    @app.delete("/v1/intervals/{interval_id}", status_code=204)
    def delete_interval(interval_id: str) -> Response:
        if not editor.delete_interval(interval_id):
            raise HTTPException(status_code=404, detail=f"interval '{interval_id}' not found")
        return Response(status_code=204)

    @app.post("/v1/intervals/overlaps", response_model=OverlapQueryResponse)
    def query_overlaps(payload: OverlapQueryRequest) -> OverlapQueryResponse:
        try:
            overlaps = editor.query_overlaps(
                start_time=payload.start_time,
                grid_unit=payload.grid_unit,
                grid_amount=payload.grid_amount,
                exclude_id=payload.exclude_id,
                layer_id=payload.layer_id,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return OverlapQueryResponse(overlaps=overlaps)

    @app.put("/v1/selection", response_model=SelectionResponse)
    def set_selection(payload: SelectionRequest) -> SelectionResponse:
        editor.set_selection(payload.interval_ids)
        return SelectionResponse(interval_ids=selection())

    @app.delete("/v1/selection", response_model=SelectionResponse)
    def clear_selection() -> SelectionResponse:
        editor.clear_selection()
        return SelectionResponse(interval_ids=[])

    @app.post("/v1/batch/scale", response_model=BatchResponse)
    def scale_selection(payload: ScaleRequest) -> BatchResponse:
        try:
            affected = editor.scale(payload.factor)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return BatchResponse(operation="scale", affected=affected, selection=selection())

    @app.post("/v1/batch/{operation}", response_model=BatchResponse)
    def run_batch(operation: str) -> BatchResponse:
        if operation not in BATCH_OPERATIONS:
            raise HTTPException(status_code=400, detail=f"Unsupported batch operation '{operation}'")
        created: list[str] = []
        if operation == "copy":
            affected = editor.copy()
        elif operation == "paste":
            created = editor.paste()
            affected = len(created)
        elif operation == "duplicate":
            created = editor.duplicate()
            affected = len(created)
        elif operation == "double":
            affected = editor.double()
        elif operation == "halve":
            affected = editor.halve()
        else:
            affected = editor.delete_selected()
        return BatchResponse(operation=operation, affected=affected, created_ids=created, selection=selection())

    @app.get("/v1/grid", response_model=GridSettingsResponse)
    def get_grid() -> GridSettingsResponse:
        grid = editor.grid_settings
        return GridSettingsResponse(unit=grid.unit, value=grid.value, label=grid.label())

    @app.put("/v1/grid", response_model=GridSettingsResponse)
    def set_grid(payload: GridSettingsPayload) -> GridSettingsResponse:
        try:
            editor.set_grid_settings(GridSettings(unit=payload.unit, value=payload.value))
        except (RuntimeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        grid = editor.grid_settings
        return GridSettingsResponse(unit=grid.unit, value=grid.value, label=grid.label())

    @app.get("/v1/grid/lines", response_model=GridLinesResponse)
    def grid_lines(min_date: int, max_date: int) -> GridLinesResponse:
        try:
            geometry = editor.geometry.with_bounds(TimelineBounds(min_date=min_date, max_date=max_date))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return GridLinesResponse(
            unit=geometry.settings.unit,
            value=geometry.settings.value,
            lines=[
                GridLineItem(
                    timestamp=line.timestamp,
                    position=line.position,
                    is_major=line.is_major,
                    label=line.label,
                )
                for line in geometry.grid_lines()
            ],
        )

    @app.get("/v1/document")
    def export_document() -> dict[str, Any]:
        return editor.export_document().model_dump(mode="json")

    @app.put("/v1/document", response_model=DocumentImportResponse)
    def import_document(document: dict[str, Any] | list[Any] = Body(...)) -> DocumentImportResponse:
        try:
            imported = editor.import_document(document)
        except (RuntimeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        warnings = [
            str(entry.get("message", ""))
            for entry in editor.get_history()
            if entry.get("type") == "warning"
        ]
        return DocumentImportResponse(imported=imported, warnings=warnings)

    return app


app = create_app()
