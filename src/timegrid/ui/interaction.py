"""Pointer-driven interaction state machine for the timeline grid.

``InteractionMachine.handle_event`` turns pointer events into a ``Transition``:
the new mode plus the effects the caller should apply (commands against the
interval store, selection changes, previews and warnings). The machine reads
the store but never mutates it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from timegrid.intervals.commands import CreateIntervalCommand, UpdateIntervalCommand
from timegrid.intervals.models import Interval, clamp_grid_amount, round_half_up
from timegrid.intervals.snapping import nearest_boundary, next_boundary, snap
from timegrid.intervals.spans import end_time
from timegrid.intervals.store import IntervalStore
from timegrid.ui.geometry import GridGeometry, HitRegion

logger = logging.getLogger(__name__)


class InteractionStateError(RuntimeError):
    """Raised when a gesture starts while another one is still active."""


class InteractionMode(str, Enum):
    IDLE = "idle"
    CREATING = "creating"
    SELECTING = "selecting"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class PointerKind(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"
    LEAVE = "leave"


@dataclass(slots=True, frozen=True)
class PointerEvent:
    kind: PointerKind
    x: float
    time_ms: int = 0
    layer_id: str | None = None
    additive: bool = False


@dataclass(slots=True, frozen=True)
class SelectionChanged:
    interval_ids: frozenset[str]


@dataclass(slots=True, frozen=True)
class EditRequested:
    interval_id: str


@dataclass(slots=True, frozen=True)
class PreviewChanged:
    start_time: int
    end_time: int
    valid: bool = True
    interval_ids: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class GestureRejected:
    reason: str


@dataclass(slots=True, frozen=True)
class GestureCancelled:
    mode: InteractionMode


Effect = (
    CreateIntervalCommand
    | UpdateIntervalCommand
    | SelectionChanged
    | EditRequested
    | PreviewChanged
    | GestureRejected
    | GestureCancelled
)


@dataclass(slots=True)
class Transition:
    state: InteractionMode
    effects: list[Effect] = field(default_factory=list)


@dataclass(slots=True)
class InteractionSettings:
    double_click_ms: int = 300
    handle_width_px: float = 8.0
    drag_threshold_ratio: float = 0.5
    prevent_overlap: bool = True


@dataclass(slots=True)
class _CreateGesture:
    anchor: int
    start_time: int
    stop_time: int
    layer_id: str | None


@dataclass(slots=True)
class _MarqueeGesture:
    origin_x: float
    origin_time: int
    current_time: int


@dataclass(slots=True)
class _DragGesture:
    primary_id: str
    origin_x: float
    originals: dict[str, Interval]
    positions: dict[str, int]
    committed: bool = False


@dataclass(slots=True)
class _ResizeGesture:
    original: Interval
    edge: HitRegion
    start_time: int
    grid_amount: int


SelectionProvider = Callable[[], set[str]]


class InteractionMachine:
    def __init__(
        self,
        store: IntervalStore,
        geometry: GridGeometry,
        selection: SelectionProvider | None = None,
        settings: InteractionSettings | None = None,
    ) -> None:
        self._store = store
        self._geometry = geometry
        self._selection = selection or (lambda: set())
        self.settings = settings or InteractionSettings()

        self._mode = InteractionMode.IDLE
        self._create: _CreateGesture | None = None
        self._marquee: _MarqueeGesture | None = None
        self._drag: _DragGesture | None = None
        self._resize: _ResizeGesture | None = None
        self._last_background_down: int | None = None
        self._last_activation: tuple[str, int] | None = None

    @property
    def state(self) -> InteractionMode:
        return self._mode

    @property
    def geometry(self) -> GridGeometry:
        return self._geometry

    def set_geometry(self, geometry: GridGeometry) -> None:
        if self._mode is not InteractionMode.IDLE:
            raise InteractionStateError("cannot change geometry during an active gesture")
        self._geometry = geometry

    def handle_event(self, event: PointerEvent) -> Transition:
        if event.kind is PointerKind.DOWN:
            return self._on_down(event)
        if event.kind is PointerKind.LEAVE:
            return self.cancel()
        if self._mode is InteractionMode.IDLE:
            return Transition(InteractionMode.IDLE)

        release = event.kind is PointerKind.UP
        if self._mode is InteractionMode.CREATING:
            return self._on_create(event, release)
        if self._mode is InteractionMode.SELECTING:
            return self._on_select(event, release)
        if self._mode is InteractionMode.DRAGGING:
            return self._on_drag(event, release)
        return self._on_resize(event, release)

    def cancel(self) -> Transition:
        mode = self._mode
        self._reset()
        if mode is InteractionMode.IDLE:
            return Transition(InteractionMode.IDLE)
        return Transition(InteractionMode.IDLE, [GestureCancelled(mode)])

    # Pointer down: choose the gesture.

    def _on_down(self, event: PointerEvent) -> Transition:
        if self._mode is not InteractionMode.IDLE:
            raise InteractionStateError(f"cannot start a gesture while '{self._mode.value}' is active")

        candidates = self._store.for_layer(event.layer_id)
        hit = self._geometry.hit_test(event.x, candidates, self.settings.handle_width_px)
        if hit is None:
            self._last_activation = None
            previous = self._last_background_down
            if previous is not None and event.time_ms - previous <= self.settings.double_click_ms:
                self._last_background_down = None
                return self._begin_create(event)
            self._last_background_down = event.time_ms
            return self._begin_select(event)

        self._last_background_down = None
        if hit.region is HitRegion.BODY:
            previous_activation = self._last_activation
            if (
                previous_activation is not None
                and previous_activation[0] == hit.interval_id
                and event.time_ms - previous_activation[1] <= self.settings.double_click_ms
            ):
                self._last_activation = None
                return Transition(InteractionMode.IDLE, [EditRequested(hit.interval_id)])
            self._last_activation = (hit.interval_id, event.time_ms)
            return self._begin_drag(event, hit.interval_id)

        self._last_activation = None
        return self._begin_resize(hit.interval_id, hit.region)

    # Creating

    def _begin_create(self, event: PointerEvent) -> Transition:
        grid = self._geometry.settings
        calendar = self._geometry.calendar
        anchor = nearest_boundary(self._time_at(event.x), grid, calendar)
        self._create = _CreateGesture(
            anchor=anchor,
            start_time=anchor,
            stop_time=next_boundary(anchor, grid, calendar),
            layer_id=event.layer_id,
        )
        self._mode = InteractionMode.CREATING
        return Transition(self._mode, [self._creation_preview()])

    def _on_create(self, event: PointerEvent, release: bool) -> Transition:
        gesture = self._create
        assert gesture is not None
        grid = self._geometry.settings
        calendar = self._geometry.calendar

        far = nearest_boundary(self._time_at(event.x), grid, calendar)
        if far == gesture.anchor:
            gesture.start_time, gesture.stop_time = gesture.anchor, next_boundary(gesture.anchor, grid, calendar)
        elif far > gesture.anchor:
            gesture.start_time, gesture.stop_time = gesture.anchor, far
        else:
            gesture.start_time, gesture.stop_time = far, gesture.anchor

        if not release:
            return Transition(self._mode, [self._creation_preview()])

        amount = self._creation_amount()
        layer_id = gesture.layer_id
        start_time = gesture.start_time
        overlapping = self._creation_overlaps()
        self._reset()
        if overlapping:
            logger.warning("Cannot create overlapping intervals at %s", start_time)
            return Transition(self._mode, [GestureRejected("overlap")])
        return Transition(
            self._mode,
            [
                CreateIntervalCommand(
                    start_time=start_time,
                    grid_unit=grid.unit,
                    grid_amount=amount,
                    layer_id=layer_id,
                )
            ],
        )

    def _creation_amount(self) -> int:
        gesture = self._create
        assert gesture is not None
        grid = self._geometry.settings
        span = self._geometry.calendar.difference(gesture.start_time, gesture.stop_time, grid.unit)
        return clamp_grid_amount(span)

    def _creation_overlaps(self) -> bool:
        gesture = self._create
        assert gesture is not None
        if not self.settings.prevent_overlap:
            return False
        return self._store.overlaps(
            gesture.start_time,
            self._geometry.settings.unit,
            self._creation_amount(),
            layer_id=gesture.layer_id,
        )

    def _creation_preview(self) -> PreviewChanged:
        gesture = self._create
        assert gesture is not None
        return PreviewChanged(gesture.start_time, gesture.stop_time, valid=not self._creation_overlaps())

    # Selecting

    def _begin_select(self, event: PointerEvent) -> Transition:
        origin = self._time_at(event.x)
        self._marquee = _MarqueeGesture(origin_x=event.x, origin_time=origin, current_time=origin)
        self._mode = InteractionMode.SELECTING
        return Transition(self._mode)

    def _on_select(self, event: PointerEvent, release: bool) -> Transition:
        gesture = self._marquee
        assert gesture is not None
        gesture.current_time = self._time_at(event.x)
        low, high = sorted((gesture.origin_time, gesture.current_time))
        is_click = abs(event.x - gesture.origin_x) < self._drag_threshold()
        hits = [] if is_click else [interval.interval_id for interval in self._store.in_range(low, high)]

        if not release:
            return Transition(self._mode, [PreviewChanged(low, high, valid=True, interval_ids=tuple(hits))])
        self._reset()
        return Transition(self._mode, [SelectionChanged(frozenset(hits))])

    # Dragging

    def _begin_drag(self, event: PointerEvent, interval_id: str) -> Transition:
        primary = self._store.require(interval_id)
        selected = self._selection()
        if interval_id in selected and len(selected) > 1:
            moving = [self._store.get(item_id) for item_id in selected]
        else:
            moving = [primary]
        originals = {interval.interval_id: interval for interval in moving if interval is not None}
        self._drag = _DragGesture(
            primary_id=interval_id,
            origin_x=event.x,
            originals=originals,
            positions={item_id: interval.start_time for item_id, interval in originals.items()},
        )
        self._mode = InteractionMode.DRAGGING
        return Transition(self._mode)

    def _on_drag(self, event: PointerEvent, release: bool) -> Transition:
        gesture = self._drag
        assert gesture is not None
        dx = event.x - gesture.origin_x
        if not gesture.committed and abs(dx) >= self._drag_threshold():
            gesture.committed = True

        effects: list[Effect] = []
        if gesture.committed:
            tentative = self._drag_positions(gesture, dx)
            if self._drag_blocked(gesture, tentative):
                logger.debug("drag frame suppressed for %s", gesture.primary_id)
            else:
                gesture.positions = tentative
                effects.append(self._drag_preview(gesture))

        if not release:
            return Transition(self._mode, effects)

        self._reset()
        if not gesture.committed:
            return Transition(self._mode, [self._click_selection(gesture.primary_id, event.additive)])
        commands: list[Effect] = [
            UpdateIntervalCommand(interval_id=item_id, start_time=position)
            for item_id, position in gesture.positions.items()
            if position != gesture.originals[item_id].start_time
        ]
        return Transition(self._mode, commands)

    def _drag_positions(self, gesture: _DragGesture, dx: float) -> dict[str, int]:
        grid = self._geometry.settings
        calendar = self._geometry.calendar
        primary = gesture.originals[gesture.primary_id]
        raw = primary.start_time + self._geometry.pixel_delta_to_time(dx)
        new_primary = snap(round_half_up(raw), grid, calendar)
        if len(gesture.originals) == 1:
            return {gesture.primary_id: new_primary}

        # The grabbed interval may sit off-grid; every member moves by the cells crossed.
        origin_cell = snap(primary.start_time, grid, calendar)
        delta_units = round_half_up(calendar.difference(origin_cell, new_primary, grid.unit))
        return {
            item_id: calendar.advance(interval.start_time, grid.unit, delta_units)
            for item_id, interval in gesture.originals.items()
        }

    def _drag_blocked(self, gesture: _DragGesture, positions: dict[str, int]) -> bool:
        if any(position < 0 for position in positions.values()):
            return True
        if not self.settings.prevent_overlap:
            return False
        moving_ids = set(gesture.originals)
        for item_id, position in positions.items():
            interval = gesture.originals[item_id]
            if self._store.overlaps(
                position,
                interval.grid_unit,
                interval.grid_amount,
                exclude_ids=moving_ids,
                layer_id=interval.layer_id,
            ):
                return True
        return False

    def _drag_preview(self, gesture: _DragGesture) -> PreviewChanged:
        primary = gesture.originals[gesture.primary_id]
        start_time = gesture.positions[gesture.primary_id]
        stop_time = self._geometry.calendar.advance(start_time, primary.grid_unit, primary.grid_amount)
        return PreviewChanged(start_time, stop_time, valid=True, interval_ids=tuple(gesture.positions))

    def _click_selection(self, interval_id: str, additive: bool) -> SelectionChanged:
        if not additive:
            return SelectionChanged(frozenset({interval_id}))
        selected = set(self._selection())
        if interval_id in selected:
            selected.discard(interval_id)
        else:
            selected.add(interval_id)
        return SelectionChanged(frozenset(selected))

    # Resizing

    def _begin_resize(self, interval_id: str, edge: HitRegion) -> Transition:
        original = self._store.require(interval_id)
        self._resize = _ResizeGesture(
            original=original,
            edge=edge,
            start_time=original.start_time,
            grid_amount=original.grid_amount,
        )
        self._mode = InteractionMode.RESIZING
        return Transition(self._mode, [self._resize_preview()])

    def _on_resize(self, event: PointerEvent, release: bool) -> Transition:
        gesture = self._resize
        assert gesture is not None
        calendar = self._geometry.calendar
        original = gesture.original
        unit = original.grid_unit
        boundary = nearest_boundary(self._time_at(event.x), self._geometry.settings, calendar)

        if gesture.edge is HitRegion.START_HANDLE:
            original_end = end_time(original, calendar)
            amount = round_half_up(calendar.difference(boundary, original_end, unit))
            if amount < 1:
                amount = 1
                start_time = calendar.advance(original_end, unit, -1)
            else:
                start_time = boundary
        else:
            start_time = original.start_time
            amount = clamp_grid_amount(calendar.difference(start_time, boundary, unit))

        effects: list[Effect] = []
        if self._resize_blocked(original, start_time, amount):
            logger.debug("resize frame suppressed for %s", original.interval_id)
        else:
            gesture.start_time = start_time
            gesture.grid_amount = amount
            effects.append(self._resize_preview())

        if not release:
            return Transition(self._mode, effects)

        self._reset()
        if gesture.start_time == original.start_time and gesture.grid_amount == original.grid_amount:
            return Transition(self._mode)
        return Transition(
            self._mode,
            [
                UpdateIntervalCommand(
                    interval_id=original.interval_id,
                    start_time=gesture.start_time if gesture.start_time != original.start_time else None,
                    grid_amount=gesture.grid_amount if gesture.grid_amount != original.grid_amount else None,
                )
            ],
        )

    def _resize_blocked(self, original: Interval, start_time: int, amount: int) -> bool:
        if start_time < 0:
            return True
        if not self.settings.prevent_overlap:
            return False
        return self._store.overlaps(
            start_time,
            original.grid_unit,
            amount,
            exclude_ids={original.interval_id},
            layer_id=original.layer_id,
        )

    def _resize_preview(self) -> PreviewChanged:
        gesture = self._resize
        assert gesture is not None
        stop_time = self._geometry.calendar.advance(gesture.start_time, gesture.original.grid_unit, gesture.grid_amount)
        return PreviewChanged(gesture.start_time, stop_time, valid=True, interval_ids=(gesture.original.interval_id,))

    # Helpers

    def _time_at(self, x: float) -> int:
        return round_half_up(self._geometry.pixels_to_time(x))

    def _drag_threshold(self) -> float:
        return self.settings.drag_threshold_ratio * self._geometry.cell_width

    def _reset(self) -> None:
        self._mode = InteractionMode.IDLE
        self._create = None
        self._marquee = None
        self._drag = None
        self._resize = None
