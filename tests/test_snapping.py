from datetime import UTC, datetime

from timegrid.intervals.calendar_math import DEFAULT_CALENDAR
from timegrid.intervals.models import GridSettings
from timegrid.intervals.snapping import nearest_boundary, next_boundary, snap


def _ms(year: int, month: int, day: int, hour: int = 0) -> int:
    return int(datetime(year, month, day, hour, tzinfo=UTC).timestamp() * 1000)


def test_single_unit_snap_is_start_of_unit() -> None:
    moment = _ms(2024, 5, 20, 13)
    for unit in ("day", "month", "year"):
        settings = GridSettings(unit=unit, value=1)
        assert snap(moment, settings) == DEFAULT_CALENDAR.start_of_unit(moment, unit)


def test_snap_is_idempotent() -> None:
    for settings in (GridSettings("day", 7), GridSettings("month", 3), GridSettings("year", 2)):
        once = snap(_ms(2024, 5, 20, 13), settings)
        assert snap(once, settings) == once


def test_multi_unit_cells_align_to_calendar_origin() -> None:
    quarter = GridSettings(unit="month", value=3)

    assert snap(_ms(2024, 5, 20), quarter) == _ms(2024, 4, 1)
    assert next_boundary(_ms(2024, 5, 20), quarter) == _ms(2024, 7, 1)
    assert snap(_ms(2024, 12, 31), quarter) == _ms(2024, 10, 1)


def test_nearest_boundary_ties_go_to_earlier() -> None:
    daily = GridSettings(unit="day", value=1)

    assert nearest_boundary(_ms(2024, 5, 20, 12), daily) == _ms(2024, 5, 20)
    assert nearest_boundary(_ms(2024, 5, 20, 13), daily) == _ms(2024, 5, 21)
    assert nearest_boundary(_ms(2024, 5, 20, 11), daily) == _ms(2024, 5, 20)


def test_boundary_is_its_own_nearest_boundary() -> None:
    monthly = GridSettings(unit="month", value=1)
    assert nearest_boundary(_ms(2024, 2, 1), monthly) == _ms(2024, 2, 1)
