"""Timeline document migration helpers."""

from __future__ import annotations

from copy import deepcopy
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from timegrid.intervals.calendar_math import DEFAULT_CALENDAR, CalendarArithmetic
from timegrid.intervals.models import DEFAULT_GRID_SETTINGS, GridSettings
from timegrid.intervals.spans import from_legacy_span
from timegrid.project.schema import CURRENT_FORMAT_VERSION, GridSettingsRecord, IntervalRecord, TimelineDocumentV2


def migrate_to_v2(
    document: dict[str, Any] | list[Any],
    calendar: CalendarArithmetic = DEFAULT_CALENDAR,
) -> TimelineDocumentV2:
    """Load a version 2 document, a version 1 document or a bare list of legacy records.

    Legacy records carry an explicit ``endTime``; their span is measured in the
    document's grid unit and rounded to a whole amount. Records that cannot be
    read are dropped and noted in ``history``.
    """
    if isinstance(document, list):
        original: dict[str, Any] = {"format_version": 1, "intervals": deepcopy(document)}
    else:
        original = deepcopy(document)
    format_version = int(original.get("format_version", 1))
    if format_version not in (1, CURRENT_FORMAT_VERSION):
        raise ValueError(f"Unsupported format_version={format_version}")

    history = original.get("history")
    if not isinstance(history, list):
        history = []
    original["history"] = history

    settings = _ensure_grid_settings_valid(original, history)
    raw_records = original.get("intervals", [])
    if not isinstance(raw_records, list):
        _warn(history, "intervals was not a list and has been discarded")
        raw_records = []

    records: list[dict[str, Any]] = []
    seen: set[str] = set()
    for idx, raw in enumerate(raw_records):
        if format_version == 1:
            record = _convert_legacy_record(raw, settings, calendar)
        else:
            record = _check_record(raw)
        if record is None:
            _warn(history, f"interval record #{idx} was malformed and has been skipped")
            continue
        if record["id"] in seen:
            _warn(history, f"duplicate interval id '{record['id']}' has been skipped")
            continue
        seen.add(record["id"])
        records.append(record)

    original["format_version"] = CURRENT_FORMAT_VERSION
    original["intervals"] = records
    original["grid_settings"] = GridSettingsRecord.from_settings(settings).model_dump()
    return TimelineDocumentV2.model_validate(original)


def _ensure_grid_settings_valid(document: dict[str, Any], history: list[dict[str, Any]]) -> GridSettings:
    raw = document.get("grid_settings", document.get("gridSettings"))
    if raw is None:
        return DEFAULT_GRID_SETTINGS
    try:
        return GridSettingsRecord.model_validate(raw).to_settings()
    except (ValidationError, ValueError):
        _warn(history, f"invalid grid settings {raw!r} were replaced with '{DEFAULT_GRID_SETTINGS.label()}'")
        return DEFAULT_GRID_SETTINGS


def _check_record(raw: Any) -> dict[str, Any] | None:
    try:
        return IntervalRecord.model_validate(raw).model_dump()
    except ValidationError:
        return None


def _convert_legacy_record(raw: Any, settings: GridSettings, calendar: CalendarArithmetic) -> dict[str, Any] | None:
    if not isinstance(raw, dict):
        return None
    if "gridUnit" in raw and "gridAmount" in raw:
        return _check_record(raw)

    interval_id = raw.get("id")
    start_time = raw.get("startTime")
    stop_time = raw.get("endTime")
    if not interval_id or not _is_millis(start_time) or not _is_millis(stop_time):
        return None
    if start_time < 0 or stop_time <= start_time:
        return None
    metadata = raw.get("metadata")
    interval = from_legacy_span(
        str(interval_id),
        int(start_time),
        int(stop_time),
        settings,
        metadata=metadata if isinstance(metadata, dict) else {},
        layer_id=raw.get("layerId"),
        calendar=calendar,
    )
    try:
        return IntervalRecord.from_interval(interval).model_dump()
    except ValidationError:
        return None


def _is_millis(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _warn(history: list[dict[str, Any]], message: str) -> None:
    history.append(
        {
            "type": "warning",
            "message": message,
            "created_at": datetime.now(UTC).isoformat(),
        }
    )
