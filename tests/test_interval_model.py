from datetime import UTC, datetime

import pytest

from timegrid.intervals.models import GridSettings, Interval, clamp_grid_amount, round_half_up
from timegrid.intervals.spans import (
    duration_text,
    end_time,
    from_legacy_span,
    intervals_overlap,
    move_interval_to,
    ranges_overlap,
    resize_interval,
    to_legacy_record,
)


def _ms(year: int, month: int, day: int) -> int:
    return int(datetime(year, month, day, tzinfo=UTC).timestamp() * 1000)


def _month(start: int, amount: int = 1, interval_id: str = "i1", layer_id: str | None = None) -> Interval:
    return Interval(interval_id=interval_id, start_time=start, grid_unit="month", grid_amount=amount, layer_id=layer_id)


def test_end_time_follows_the_calendar() -> None:
    july = _month(_ms(2024, 7, 1))
    assert end_time(july) == _ms(2024, 8, 1)

    march = move_interval_to(july, _ms(2024, 3, 1))
    assert end_time(march) == _ms(2024, 4, 1)
    assert end_time(march) - march.start_time == 31 * 86_400_000


def test_february_interval_is_shorter_than_january() -> None:
    january = _month(_ms(2023, 1, 1))
    february = move_interval_to(january, _ms(2023, 2, 1))
    assert end_time(february) == _ms(2023, 3, 1)
    assert end_time(february) - february.start_time == 28 * 86_400_000


def test_move_keeps_shape() -> None:
    original = _month(_ms(2024, 6, 1), amount=3)
    moved = move_interval_to(original, _ms(2025, 1, 1))

    assert moved.grid_unit == original.grid_unit
    assert moved.grid_amount == original.grid_amount
    assert moved.interval_id == original.interval_id
    assert original.start_time == _ms(2024, 6, 1)


def test_resize_clamps_to_one() -> None:
    original = _month(_ms(2024, 6, 1), amount=3)
    assert resize_interval(original, 0).grid_amount == 1
    assert resize_interval(original, 2.5).grid_amount == 3


def test_round_half_up_differs_from_bankers_rounding() -> None:
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0
    assert clamp_grid_amount(0.4) == 1


def test_overlap_is_half_open_and_symmetric() -> None:
    first = _month(_ms(2024, 1, 1), interval_id="a")
    adjacent = _month(_ms(2024, 2, 1), interval_id="b")
    covering = _month(_ms(2023, 12, 1), amount=3, interval_id="c")

    assert not intervals_overlap(first, adjacent)
    assert not intervals_overlap(adjacent, first)
    assert intervals_overlap(first, covering)
    assert intervals_overlap(covering, first)
    assert not ranges_overlap(0, 10, 10, 20)
    assert ranges_overlap(0, 11, 10, 20)


def test_interval_validation() -> None:
    with pytest.raises(ValueError):
        _month(-1).validate()
    with pytest.raises(ValueError):
        Interval(interval_id="x", start_time=0, grid_unit="month", grid_amount=0).validate()
    with pytest.raises(ValueError):
        Interval(interval_id="x", start_time=0, grid_unit="week", grid_amount=1).validate()  # type: ignore[arg-type]


def test_clone_gets_fresh_id_and_independent_metadata() -> None:
    original = Interval(
        interval_id="a",
        start_time=_ms(2024, 1, 1),
        grid_unit="day",
        grid_amount=2,
        metadata={"label": "Sprint", "tags": ["x"]},
    )
    cloned = original.clone()
    cloned.metadata["tags"].append("y")

    assert cloned.interval_id != original.interval_id
    assert original.metadata["tags"] == ["x"]


def test_grid_settings_limits() -> None:
    GridSettings(unit="day", value=365).validate()
    GridSettings(unit="year", value=10).validate()
    for unit, value in (("day", 0), ("day", 366), ("month", 13), ("year", 11)):
        with pytest.raises(ValueError):
            GridSettings(unit=unit, value=value).validate()  # type: ignore[arg-type]
    assert GridSettings(unit="month", value=3).label() == "3 Month(s)"


def test_legacy_span_conversion_rounds_in_grid_unit() -> None:
    converted = from_legacy_span("old", _ms(2024, 7, 1), _ms(2024, 8, 1), GridSettings("month", 1))
    assert converted.grid_amount == 1
    assert converted.grid_unit == "month"

    days = from_legacy_span("old", _ms(2024, 7, 1), _ms(2024, 7, 1) + 36 * 3_600_000, GridSettings("day", 1))
    assert days.grid_amount == 2

    record = to_legacy_record(converted)
    assert record["endTime"] == _ms(2024, 8, 1)


def test_duration_text() -> None:
    assert duration_text(0, 3 * 86_400_000) == "3 days"
    assert duration_text(0, 2 * 3_600_000) == "2 hours"
    assert duration_text(0, 90_000) == "2 minutes"
    assert duration_text(0, 5_000) == "5 seconds"
