"""Runtime settings for the editor, read from ``TIMEGRID_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from timegrid.intervals.models import DEFAULT_GRID_SETTINGS, GridSettings


@dataclass(slots=True)
class EditorSettings:
    display_tz: str = "UTC"
    prevent_overlap: bool = True
    grid: GridSettings = DEFAULT_GRID_SETTINGS
    pixels_per_cell: float = 100.0
    double_click_ms: int = 300
    handle_width_px: float = 8.0
    drag_threshold_ratio: float = 0.5
    reference_ms: int | None = None

    @staticmethod
    def from_env() -> EditorSettings:
        display_tz = os.getenv("TIMEGRID_DISPLAY_TZ", "UTC").strip() or "UTC"
        prevent_overlap = _env_flag("TIMEGRID_PREVENT_OVERLAP", True)

        unit = os.getenv("TIMEGRID_DEFAULT_GRID_UNIT", DEFAULT_GRID_SETTINGS.unit).strip()
        grid_value = _env_int("TIMEGRID_DEFAULT_GRID_VALUE", DEFAULT_GRID_SETTINGS.value)
        grid = GridSettings(unit=unit, value=grid_value)  # type: ignore[arg-type]
        try:
            grid.validate()
        except ValueError:
            grid = DEFAULT_GRID_SETTINGS

        pixels_per_cell = _env_float("TIMEGRID_PIXELS_PER_CELL", 100.0)
        reference_raw = os.getenv("TIMEGRID_REFERENCE_MS", "").strip()
        try:
            reference_ms: int | None = int(reference_raw) if reference_raw else None
        except ValueError:
            reference_ms = None

        return EditorSettings(
            display_tz=display_tz,
            prevent_overlap=prevent_overlap,
            grid=grid,
            pixels_per_cell=max(pixels_per_cell, 1.0),
            double_click_ms=max(_env_int("TIMEGRID_DOUBLE_CLICK_MS", 300), 1),
            handle_width_px=max(_env_float("TIMEGRID_HANDLE_WIDTH_PX", 8.0), 0.0),
            reference_ms=reference_ms,
        )


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default
