"""Editor service: interval store, selection, clipboard and gestures for one session."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from timegrid.config import EditorSettings
from timegrid.intervals.batch import BatchTransformEngine
from timegrid.intervals.calendar_math import CalendarArithmetic
from timegrid.intervals.commands import (
    CreateIntervalCommand,
    DeleteIntervalCommand,
    IntervalCommand,
    UpdateIntervalCommand,
)
from timegrid.intervals.models import GridSettings, GridUnit, Interval
from timegrid.intervals.store import UPDATABLE_FIELDS, IntervalStore
from timegrid.project.migration import migrate_to_v2
from timegrid.project.schema import GridSettingsRecord, IntervalRecord, TimelineDocumentV2, TimelineMeta
from timegrid.ui.geometry import GridGeometry, TimelineBounds, now_millis
from timegrid.ui.interaction import (
    EditRequested,
    InteractionMachine,
    InteractionSettings,
    PointerEvent,
    SelectionChanged,
    Transition,
)

logger = logging.getLogger(__name__)


class IntervalEditorService:
    def __init__(
        self,
        settings: EditorSettings | None = None,
        bounds: TimelineBounds | None = None,
        clear_clipboard_on_paste: bool = True,
    ) -> None:
        self.settings = settings or EditorSettings.from_env()
        self.settings.grid.validate()
        self.calendar = CalendarArithmetic(self.settings.display_tz)
        self.store = IntervalStore(self.calendar)
        self.meta = TimelineMeta()

        self._grid = self.settings.grid
        self._selection: set[str] = set()
        self._batch = BatchTransformEngine(self.calendar, clear_clipboard_on_paste=clear_clipboard_on_paste)
        self._history: list[dict[str, Any]] = []
        self._pending_edit: str | None = None

        reference = self.settings.reference_ms
        bounds = bounds or TimelineBounds.around(now_millis() if reference is None else reference)
        self._geometry = GridGeometry(
            bounds,
            self._grid,
            base_pixels_per_cell=self.settings.pixels_per_cell,
            reference_ms=reference,
            calendar=self.calendar,
        )
        self._interaction = InteractionMachine(
            self.store,
            self._geometry,
            selection=self.get_selection,
            settings=InteractionSettings(
                double_click_ms=self.settings.double_click_ms,
                handle_width_px=self.settings.handle_width_px,
                drag_threshold_ratio=self.settings.drag_threshold_ratio,
                prevent_overlap=self.settings.prevent_overlap,
            ),
        )

    # Grid and viewport

    @property
    def grid_settings(self) -> GridSettings:
        return self._grid

    @property
    def geometry(self) -> GridGeometry:
        return self._geometry

    @property
    def interaction(self) -> InteractionMachine:
        return self._interaction

    def set_grid_settings(self, settings: GridSettings) -> None:
        settings.validate()
        self._set_geometry(self._geometry.with_settings(settings))
        self._grid = settings

    def set_bounds(self, bounds: TimelineBounds) -> None:
        self._set_geometry(self._geometry.with_bounds(bounds))

    def fit_to_width(self, width_px: float) -> None:
        self._set_geometry(
            GridGeometry.fit_to_width(
                self._geometry.bounds,
                self._grid,
                width_px,
                reference_ms=self._geometry.reference_ms,
                calendar=self.calendar,
            )
        )

    def _set_geometry(self, geometry: GridGeometry) -> None:
        self._interaction.set_geometry(geometry)
        self._geometry = geometry

    # Intervals

    def create_interval(
        self,
        start_time: int,
        grid_unit: GridUnit,
        grid_amount: int,
        metadata: dict[str, Any] | None = None,
        layer_id: str | None = None,
        interval_id: str | None = None,
    ) -> str:
        interval = self.store.create(
            start_time=start_time,
            grid_unit=grid_unit,
            grid_amount=grid_amount,
            metadata=metadata,
            layer_id=layer_id,
            interval_id=interval_id,
        )
        return interval.interval_id

    def update_interval(self, interval_id: str, /, **fields: Any) -> bool:
        if interval_id not in self.store:
            logger.warning("Interval with id %s not found", interval_id)
            return False
        requested_id = fields.pop("interval_id", interval_id)
        if requested_id != interval_id:
            logger.warning("Refusing to change id of interval %s", interval_id)
            return False
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            logger.warning("Refusing to update unknown fields %s on interval %s", sorted(unknown), interval_id)
            return False
        if fields:
            self.store.update(interval_id, **fields)
        return True

    def delete_interval(self, interval_id: str) -> bool:
        if interval_id not in self.store:
            logger.warning("Interval with id %s not found", interval_id)
            return False
        self.store.remove(interval_id)
        self._selection.discard(interval_id)
        return True

    def get_interval(self, interval_id: str) -> Interval | None:
        return self.store.get(interval_id)

    def list_intervals(self) -> list[Interval]:
        return self.store.intervals_in_order()

    def end_time(self, interval: Interval) -> int:
        return self.store.end_time(interval)

    def query_overlaps(
        self,
        start_time: int,
        grid_unit: GridUnit,
        grid_amount: int,
        exclude_id: str | None = None,
        layer_id: str | None = None,
    ) -> bool:
        excluded = [exclude_id] if exclude_id is not None else []
        return self.store.overlaps(start_time, grid_unit, grid_amount, exclude_ids=excluded, layer_id=layer_id)

    def apply_commands(self, commands: Iterable[IntervalCommand]) -> list[str]:
        """Apply create/update/delete commands in order and return the created ids."""
        created: list[str] = []
        for command in commands:
            if isinstance(command, CreateIntervalCommand):
                created.append(
                    self.create_interval(
                        start_time=command.start_time,
                        grid_unit=command.grid_unit,
                        grid_amount=command.grid_amount,
                        metadata=command.metadata,
                        layer_id=command.layer_id,
                        interval_id=command.interval_id,
                    )
                )
            elif isinstance(command, UpdateIntervalCommand):
                self.update_interval(command.interval_id, **command.changes())
            elif isinstance(command, DeleteIntervalCommand):
                self.delete_interval(command.interval_id)
        return created

    # Selection

    def get_selection(self) -> set[str]:
        return set(self._selection)

    def selected_intervals(self) -> list[Interval]:
        return [interval for interval in self.store.intervals_in_order() if interval.interval_id in self._selection]

    def set_selection(self, interval_ids: Iterable[str]) -> None:
        requested = set(interval_ids)
        unknown = requested - self.store.ids()
        if unknown:
            logger.warning("Ignoring unknown interval ids in selection: %s", sorted(unknown))
        self._selection = requested - unknown

    def clear_selection(self) -> None:
        self._selection = set()

    def select(self, interval_id: str) -> None:
        self.set_selection(self._selection | {interval_id})

    def deselect(self, interval_id: str) -> None:
        self._selection.discard(interval_id)

    def toggle_selection(self, interval_id: str) -> None:
        if interval_id in self._selection:
            self.deselect(interval_id)
        else:
            self.select(interval_id)

    # Batch transforms

    @property
    def clipboard(self) -> list[Interval]:
        return self._batch.clipboard

    def copy(self) -> int:
        count = self._batch.copy(self.selected_intervals())
        if count:
            self.clear_selection()
        return count

    def paste(self) -> list[str]:
        return self.apply_commands(self._batch.paste(self.selected_intervals()))

    def duplicate(self) -> list[str]:
        return self.apply_commands(self._batch.duplicate(self.selected_intervals()))

    def scale(self, factor: float) -> int:
        commands = self._batch.scale(self.selected_intervals(), factor)
        self.apply_commands(commands)
        return len(commands)

    def double(self) -> int:
        return self.scale(2.0)

    def halve(self) -> int:
        return self.scale(0.5)

    def delete_selected(self) -> int:
        commands = self._batch.delete(self._selection)
        self.apply_commands(commands)
        self.clear_selection()
        return len(commands)

    # Pointer gestures

    def handle_pointer(self, event: PointerEvent) -> Transition:
        transition = self._interaction.handle_event(event)
        commands: list[IntervalCommand] = []
        for effect in transition.effects:
            if isinstance(effect, (CreateIntervalCommand, UpdateIntervalCommand, DeleteIntervalCommand)):
                commands.append(effect)
            elif isinstance(effect, SelectionChanged):
                self.set_selection(effect.interval_ids)
            elif isinstance(effect, EditRequested):
                self._pending_edit = effect.interval_id
        self.apply_commands(commands)
        return transition

    def cancel_gesture(self) -> Transition:
        return self._interaction.cancel()

    def take_edit_request(self) -> str | None:
        interval_id, self._pending_edit = self._pending_edit, None
        return interval_id

    # Documents

    def export_document(self) -> TimelineDocumentV2:
        return TimelineDocumentV2(
            meta=self.meta.model_copy(),
            grid_settings=GridSettingsRecord.from_settings(self._grid),
            intervals=[IntervalRecord.from_interval(interval) for interval in self.store.intervals_in_order()],
            history=list(self._history),
        )

    def import_document(self, document: dict[str, Any] | Sequence[Any]) -> int:
        """Replace the session contents with ``document`` and return the interval count."""
        migrated = migrate_to_v2(list(document) if not isinstance(document, dict) else document, self.calendar)
        settings = migrated.grid_settings.to_settings()
        self.set_grid_settings(settings)
        self.store.replace_all(record.to_interval() for record in migrated.intervals)
        self.meta = migrated.meta
        self._history = list(migrated.history)
        self.clear_selection()
        for entry in migrated.history:
            if entry.get("type") == "warning":
                logger.warning("document import: %s", entry.get("message"))
        return len(self.store)

    def get_history(self) -> list[dict[str, Any]]:
        return list(self._history)
