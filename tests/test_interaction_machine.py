from datetime import UTC, datetime

import pytest

from timegrid.intervals.commands import CreateIntervalCommand, UpdateIntervalCommand
from timegrid.intervals.models import GridSettings
from timegrid.intervals.store import IntervalStore
from timegrid.ui.geometry import GridGeometry, TimelineBounds
from timegrid.ui.interaction import (
    EditRequested,
    GestureCancelled,
    GestureRejected,
    InteractionMachine,
    InteractionMode,
    InteractionSettings,
    InteractionStateError,
    PointerEvent,
    PointerKind,
    PreviewChanged,
    SelectionChanged,
)


def _ms(year: int, month: int, day: int) -> int:
    return int(datetime(year, month, day, tzinfo=UTC).timestamp() * 1000)


def _geometry() -> GridGeometry:
    return GridGeometry(
        TimelineBounds(min_date=_ms(2024, 1, 1), max_date=_ms(2025, 1, 1)),
        GridSettings(unit="month", value=1),
        base_pixels_per_cell=100.0,
        reference_ms=_ms(2024, 1, 1),
    )


def _machine(store: IntervalStore, selected: set[str] | None = None) -> InteractionMachine:
    return InteractionMachine(
        store,
        _geometry(),
        selection=lambda: set(selected or set()),
        settings=InteractionSettings(),
    )


def _event(kind: PointerKind, x: float, time_ms: int = 0, **kwargs) -> PointerEvent:
    return PointerEvent(kind=kind, x=x, time_ms=time_ms, **kwargs)


def _x(timestamp: int) -> float:
    return _geometry().time_to_pixels(timestamp)


def _double_click_down(machine: InteractionMachine, x: float) -> None:
    machine.handle_event(_event(PointerKind.DOWN, x, 0))
    machine.handle_event(_event(PointerKind.UP, x, 40))
    transition = machine.handle_event(_event(PointerKind.DOWN, x, 120))
    assert transition.state is InteractionMode.CREATING


def test_double_click_and_drag_creates_snapped_interval() -> None:
    store = IntervalStore()
    machine = _machine(store)

    _double_click_down(machine, _x(_ms(2024, 2, 1)) + 1)
    preview = machine.handle_event(_event(PointerKind.MOVE, _x(_ms(2024, 5, 1)) + 5, 200))
    assert preview.effects == [PreviewChanged(_ms(2024, 2, 1), _ms(2024, 5, 1), valid=True)]

    done = machine.handle_event(_event(PointerKind.UP, _x(_ms(2024, 5, 1)) + 5, 260))

    assert done.state is InteractionMode.IDLE
    assert done.effects == [
        CreateIntervalCommand(start_time=_ms(2024, 2, 1), grid_unit="month", grid_amount=3, layer_id=None)
    ]
    assert len(store) == 0


def test_backwards_creation_drag_is_normalized() -> None:
    machine = _machine(IntervalStore())

    _double_click_down(machine, _x(_ms(2024, 5, 1)) + 1)
    done = machine.handle_event(_event(PointerKind.UP, _x(_ms(2024, 2, 1)) + 1, 300))

    command = done.effects[0]
    assert isinstance(command, CreateIntervalCommand)
    assert command.start_time == _ms(2024, 2, 1)
    assert command.grid_amount == 3


def test_creation_without_movement_makes_one_cell() -> None:
    machine = _machine(IntervalStore())

    _double_click_down(machine, _x(_ms(2024, 7, 1)) + 1)
    done = machine.handle_event(_event(PointerKind.UP, _x(_ms(2024, 7, 1)) + 1, 200))

    assert done.effects == [CreateIntervalCommand(start_time=_ms(2024, 7, 1), grid_unit="month", grid_amount=1)]


def test_overlapping_creation_is_rejected() -> None:
    store = IntervalStore()
    store.create(_ms(2024, 3, 1), "month", 1)
    machine = _machine(store)

    _double_click_down(machine, 1.0)
    preview = machine.handle_event(_event(PointerKind.MOVE, _x(_ms(2024, 5, 1)), 200))
    assert preview.effects[0].valid is False

    done = machine.handle_event(_event(PointerKind.UP, _x(_ms(2024, 5, 1)), 250))
    assert done.state is InteractionMode.IDLE
    assert done.effects == [GestureRejected("overlap")]


def test_slow_second_click_starts_a_marquee_instead() -> None:
    machine = _machine(IntervalStore())
    machine.handle_event(_event(PointerKind.DOWN, 10.0, 0))
    machine.handle_event(_event(PointerKind.UP, 10.0, 40))

    transition = machine.handle_event(_event(PointerKind.DOWN, 10.0, 1_000))
    assert transition.state is InteractionMode.SELECTING


def test_marquee_selects_intersecting_intervals() -> None:
    store = IntervalStore()
    store.create(_ms(2024, 1, 1), "month", 1, interval_id="jan")
    store.create(_ms(2024, 3, 1), "month", 1, interval_id="mar")
    store.create(_ms(2024, 6, 1), "month", 1, interval_id="jun")
    machine = _machine(store)

    machine.handle_event(_event(PointerKind.DOWN, _x(_ms(2024, 2, 1)) + 10, 0))
    machine.handle_event(_event(PointerKind.MOVE, _x(_ms(2024, 4, 15)), 50))
    done = machine.handle_event(_event(PointerKind.UP, _x(_ms(2024, 4, 15)), 90))

    assert done.effects == [SelectionChanged(frozenset({"mar"}))]


def test_background_click_clears_selection() -> None:
    machine = _machine(IntervalStore(), selected={"x"})
    machine.handle_event(_event(PointerKind.DOWN, 300.0, 0))
    done = machine.handle_event(_event(PointerKind.UP, 302.0, 30))
    assert done.effects == [SelectionChanged(frozenset())]


def test_drag_moves_june_interval_to_march() -> None:
    store = IntervalStore()
    june = store.create(_ms(2024, 6, 1), "month", 1)
    machine = _machine(store)
    grab_x = _x(_ms(2024, 6, 16))
    dx = _x(_ms(2024, 3, 8)) - _x(_ms(2024, 6, 1))

    assert machine.handle_event(_event(PointerKind.DOWN, grab_x, 0)).state is InteractionMode.DRAGGING
    assert machine.handle_event(_event(PointerKind.MOVE, grab_x - 10, 20)).effects == []
    machine.handle_event(_event(PointerKind.MOVE, grab_x + dx, 40))
    done = machine.handle_event(_event(PointerKind.UP, grab_x + dx, 60))

    assert done.effects == [UpdateIntervalCommand(interval_id=june.interval_id, start_time=_ms(2024, 3, 1))]


def test_click_on_interval_selects_or_toggles() -> None:
    store = IntervalStore()
    june = store.create(_ms(2024, 6, 1), "month", 1)
    grab_x = _x(_ms(2024, 6, 16))

    machine = _machine(store, selected={"other"})
    machine.handle_event(_event(PointerKind.DOWN, grab_x, 0))
    done = machine.handle_event(_event(PointerKind.UP, grab_x + 3, 30))
    assert done.effects == [SelectionChanged(frozenset({june.interval_id}))]

    machine = _machine(store, selected={"other"})
    machine.handle_event(_event(PointerKind.DOWN, grab_x, 0, additive=True))
    done = machine.handle_event(_event(PointerKind.UP, grab_x, 30, additive=True))
    assert done.effects == [SelectionChanged(frozenset({"other", june.interval_id}))]


def test_multi_selection_drag_shifts_by_grid_units() -> None:
    store = IntervalStore()
    store.create(_ms(2024, 1, 1), "month", 1, interval_id="a")
    store.create(_ms(2024, 3, 1), "month", 1, interval_id="b")
    machine = _machine(store, selected={"a", "b"})
    grab_x = _x(_ms(2024, 1, 15))
    dx = _x(_ms(2024, 3, 10)) - _x(_ms(2024, 1, 1))

    machine.handle_event(_event(PointerKind.DOWN, grab_x, 0))
    done = machine.handle_event(_event(PointerKind.UP, grab_x + dx, 40))

    assert sorted(done.effects, key=lambda command: command.interval_id) == [
        UpdateIntervalCommand(interval_id="a", start_time=_ms(2024, 3, 1)),
        UpdateIntervalCommand(interval_id="b", start_time=_ms(2024, 5, 1)),
    ]


def test_multi_selection_drag_from_off_grid_start_keeps_spacing() -> None:
    store = IntervalStore()
    store.create(_ms(2024, 1, 15), "month", 1, interval_id="a")
    store.create(_ms(2024, 3, 1), "month", 1, interval_id="b")
    machine = _machine(store, selected={"a", "b"})
    grab_x = _x(_ms(2024, 1, 20))
    dx = 0.6 * _geometry().cell_width

    machine.handle_event(_event(PointerKind.DOWN, grab_x, 0))
    done = machine.handle_event(_event(PointerKind.UP, grab_x + dx, 40))

    assert sorted(done.effects, key=lambda command: command.interval_id) == [
        UpdateIntervalCommand(interval_id="a", start_time=_ms(2024, 2, 15)),
        UpdateIntervalCommand(interval_id="b", start_time=_ms(2024, 4, 1)),
    ]


def test_drag_into_neighbour_is_suppressed() -> None:
    store = IntervalStore()
    june = store.create(_ms(2024, 6, 1), "month", 1)
    store.create(_ms(2024, 4, 1), "month", 1)
    machine = _machine(store)
    grab_x = _x(_ms(2024, 6, 16))

    machine.handle_event(_event(PointerKind.DOWN, grab_x, 0))
    blocked = machine.handle_event(_event(PointerKind.MOVE, grab_x + _x(_ms(2024, 4, 10)) - _x(_ms(2024, 6, 1)), 20))
    assert blocked.state is InteractionMode.DRAGGING
    assert blocked.effects == []

    moved = _x(_ms(2024, 8, 10)) - _x(_ms(2024, 6, 1))
    done = machine.handle_event(_event(PointerKind.UP, grab_x + moved, 40))
    assert done.effects == [UpdateIntervalCommand(interval_id=june.interval_id, start_time=_ms(2024, 8, 1))]


def test_blocked_release_commits_nothing() -> None:
    store = IntervalStore()
    store.create(_ms(2024, 6, 1), "month", 1)
    store.create(_ms(2024, 4, 1), "month", 1)
    machine = _machine(store)
    grab_x = _x(_ms(2024, 6, 16))
    target = grab_x + _x(_ms(2024, 4, 10)) - _x(_ms(2024, 6, 1))

    machine.handle_event(_event(PointerKind.DOWN, grab_x, 0))
    done = machine.handle_event(_event(PointerKind.UP, target, 20))
    assert done.state is InteractionMode.IDLE
    assert done.effects == []


def test_resize_end_edge_recomputes_amount() -> None:
    store = IntervalStore()
    june = store.create(_ms(2024, 6, 1), "month", 1)
    machine = _machine(store)
    left, width = _geometry().interval_span(june)

    assert machine.handle_event(_event(PointerKind.DOWN, left + width - 2, 0)).state is InteractionMode.RESIZING
    done = machine.handle_event(_event(PointerKind.UP, _x(_ms(2024, 8, 1)), 30))

    assert done.effects == [UpdateIntervalCommand(interval_id=june.interval_id, grid_amount=2)]


def test_resize_end_edge_stops_at_neighbour() -> None:
    store = IntervalStore()
    june = store.create(_ms(2024, 6, 1), "month", 1)
    store.create(_ms(2024, 8, 1), "month", 1)
    machine = _machine(store)
    left, width = _geometry().interval_span(june)

    machine.handle_event(_event(PointerKind.DOWN, left + width - 2, 0))
    grown = machine.handle_event(_event(PointerKind.MOVE, _x(_ms(2024, 8, 1)), 10))
    assert grown.effects == [
        PreviewChanged(_ms(2024, 6, 1), _ms(2024, 8, 1), valid=True, interval_ids=(june.interval_id,))
    ]
    blocked = machine.handle_event(_event(PointerKind.MOVE, _x(_ms(2024, 9, 1)), 20))
    assert blocked.state is InteractionMode.RESIZING
    assert blocked.effects == []

    done = machine.handle_event(_event(PointerKind.UP, _x(_ms(2024, 9, 1)), 30))
    assert done.effects == [UpdateIntervalCommand(interval_id=june.interval_id, grid_amount=2)]


def test_resize_start_edge_into_neighbour_commits_nothing() -> None:
    store = IntervalStore()
    june = store.create(_ms(2024, 6, 1), "month", 1)
    store.create(_ms(2024, 4, 1), "month", 1)
    machine = _machine(store)
    left, _width = _geometry().interval_span(june)

    machine.handle_event(_event(PointerKind.DOWN, left + 2, 0))
    blocked = machine.handle_event(_event(PointerKind.MOVE, _x(_ms(2024, 3, 1)), 10))
    assert blocked.effects == []

    done = machine.handle_event(_event(PointerKind.UP, _x(_ms(2024, 3, 1)), 20))
    assert done.state is InteractionMode.IDLE
    assert done.effects == []


def test_drag_result_depends_only_on_latest_pointer_position() -> None:
    grab_x = _x(_ms(2024, 6, 16))
    target = grab_x + _x(_ms(2024, 3, 8)) - _x(_ms(2024, 6, 1))

    store = IntervalStore()
    june = store.create(_ms(2024, 6, 1), "month", 1)
    machine = _machine(store)
    machine.handle_event(_event(PointerKind.DOWN, grab_x, 0))
    machine.handle_event(_event(PointerKind.MOVE, grab_x + 400, 10))
    machine.handle_event(_event(PointerKind.MOVE, grab_x - 90, 20))
    first = machine.handle_event(_event(PointerKind.MOVE, target, 30))
    again = machine.handle_event(_event(PointerKind.MOVE, target, 30))
    stepped = machine.handle_event(_event(PointerKind.UP, target, 40))

    coalesced = _machine(store)
    coalesced.handle_event(_event(PointerKind.DOWN, grab_x, 0))
    jumped = coalesced.handle_event(_event(PointerKind.UP, target, 40))

    assert first.effects == again.effects
    assert stepped.effects == jumped.effects
    assert jumped.effects == [UpdateIntervalCommand(interval_id=june.interval_id, start_time=_ms(2024, 3, 1))]


def test_resize_start_edge_keeps_end_fixed() -> None:
    store = IntervalStore()
    june = store.create(_ms(2024, 6, 1), "month", 1)
    machine = _machine(store)
    left, _width = _geometry().interval_span(june)

    machine.handle_event(_event(PointerKind.DOWN, left + 2, 0))
    done = machine.handle_event(_event(PointerKind.UP, _x(_ms(2024, 4, 1)), 30))

    assert done.effects == [
        UpdateIntervalCommand(interval_id=june.interval_id, start_time=_ms(2024, 4, 1), grid_amount=3)
    ]


def test_resize_start_past_end_clamps_to_one_unit() -> None:
    store = IntervalStore()
    june = store.create(_ms(2024, 6, 1), "month", 1)
    machine = _machine(store)
    left, _width = _geometry().interval_span(june)

    machine.handle_event(_event(PointerKind.DOWN, left + 2, 0))
    done = machine.handle_event(_event(PointerKind.UP, _x(_ms(2024, 9, 1)), 30))

    assert done.state is InteractionMode.IDLE
    assert done.effects == []


def test_pointer_leave_cancels_gesture() -> None:
    machine = _machine(IntervalStore())
    _double_click_down(machine, 1.0)

    cancelled = machine.handle_event(_event(PointerKind.LEAVE, 0.0, 200))

    assert cancelled.state is InteractionMode.IDLE
    assert cancelled.effects == [GestureCancelled(InteractionMode.CREATING)]
    assert machine.handle_event(_event(PointerKind.UP, 300.0, 220)).effects == []


def test_double_activation_requests_edit() -> None:
    store = IntervalStore()
    june = store.create(_ms(2024, 6, 1), "month", 1)
    machine = _machine(store)
    grab_x = _x(_ms(2024, 6, 16))

    machine.handle_event(_event(PointerKind.DOWN, grab_x, 0))
    machine.handle_event(_event(PointerKind.UP, grab_x, 40))
    transition = machine.handle_event(_event(PointerKind.DOWN, grab_x, 150))

    assert transition.state is InteractionMode.IDLE
    assert transition.effects == [EditRequested(june.interval_id)]


def test_hits_are_limited_to_the_pointer_layer() -> None:
    store = IntervalStore()
    store.create(_ms(2024, 6, 1), "month", 1, layer_id="team-b")
    machine = _machine(store)

    transition = machine.handle_event(_event(PointerKind.DOWN, _x(_ms(2024, 6, 16)), 0))
    assert transition.state is InteractionMode.SELECTING

    machine.cancel()
    transition = machine.handle_event(_event(PointerKind.DOWN, _x(_ms(2024, 6, 16)), 5_000, layer_id="team-b"))
    assert transition.state is InteractionMode.DRAGGING


def test_second_gesture_while_active_is_an_error() -> None:
    machine = _machine(IntervalStore())
    machine.handle_event(_event(PointerKind.DOWN, 10.0, 0))

    with pytest.raises(InteractionStateError):
        machine.handle_event(_event(PointerKind.DOWN, 20.0, 10))
