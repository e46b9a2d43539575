"""Interval editor public facade."""

from __future__ import annotations

from typing import Any

from timegrid.editor.service import IntervalEditorService
from timegrid.intervals.models import GridSettings, GridUnit, Interval
from timegrid.project.schema import TimelineDocumentV2
from timegrid.ui.interaction import PointerEvent, Transition


class IntervalEditor:
    def __init__(self, service: IntervalEditorService) -> None:
        self._service = service

    def create_interval(
        self,
        start_time: int,
        grid_unit: GridUnit,
        grid_amount: int,
        metadata: dict[str, Any] | None = None,
        layer_id: str | None = None,
    ) -> str:
        return self._service.create_interval(
            start_time=start_time,
            grid_unit=grid_unit,
            grid_amount=grid_amount,
            metadata=metadata,
            layer_id=layer_id,
        )

    def update_interval(self, interval_id: str, /, **fields: Any) -> bool:
        return self._service.update_interval(interval_id, **fields)

    def delete_interval(self, interval_id: str) -> bool:
        return self._service.delete_interval(interval_id=interval_id)

    def query_overlaps(
        self,
        start_time: int,
        grid_unit: GridUnit,
        grid_amount: int,
        exclude_id: str | None = None,
        layer_id: str | None = None,
    ) -> bool:
        return self._service.query_overlaps(
            start_time=start_time,
            grid_unit=grid_unit,
            grid_amount=grid_amount,
            exclude_id=exclude_id,
            layer_id=layer_id,
        )

    def list_intervals(self) -> list[Interval]:
        return self._service.list_intervals()

    def set_selection(self, interval_ids: list[str]) -> None:
        self._service.set_selection(interval_ids)

    def clear_selection(self) -> None:
        self._service.clear_selection()

    def get_selection(self) -> set[str]:
        return self._service.get_selection()

    def copy(self) -> int:
        return self._service.copy()

    def paste(self) -> list[str]:
        return self._service.paste()

    def duplicate(self) -> list[str]:
        return self._service.duplicate()

    def scale(self, factor: float) -> int:
        return self._service.scale(factor=factor)

    def delete(self) -> int:
        return self._service.delete_selected()

    def handle_pointer(self, event: PointerEvent) -> Transition:
        return self._service.handle_pointer(event)

    def set_grid_settings(self, settings: GridSettings) -> None:
        self._service.set_grid_settings(settings)

    def get_grid_settings(self) -> GridSettings:
        return self._service.grid_settings

    def export_document(self) -> TimelineDocumentV2:
        return self._service.export_document()

    def import_document(self, document: dict[str, Any] | list[Any]) -> int:
        return self._service.import_document(document)
