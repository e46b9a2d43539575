"""Timeline grid widget: paints grid lines and intervals, forwards mouse input as pointer events."""

from __future__ import annotations

import time
from typing import Callable, Sequence

from timegrid.editor.service import IntervalEditorService
from timegrid.intervals.calendar_math import DEFAULT_CALENDAR, CalendarArithmetic
from timegrid.intervals.models import Interval
from timegrid.intervals.spans import duration_text, end_time
from timegrid.ui.interaction import InteractionMode, PointerEvent, PointerKind, PreviewChanged

try:
    from PySide6.QtCore import QRectF, Qt
    from PySide6.QtGui import QColor, QPainter, QPen
    from PySide6.QtWidgets import QWidget
except ImportError:  # pragma: no cover - runtime-only path
    QWidget = object  # type: ignore[assignment]
    QColor = object  # type: ignore[assignment]
    QPainter = object  # type: ignore[assignment]
    QPen = object  # type: ignore[assignment]
    QRectF = object  # type: ignore[assignment]
    Qt = object  # type: ignore[assignment]

HEADER_HEIGHT = 24
ROW_HEIGHT = 40
DEFAULT_COLOR = (59, 130, 246)


def layer_rows(intervals: Sequence[Interval]) -> list[str | None]:
    """Row order: the default layer first, then named layers alphabetically."""
    named = sorted({interval.layer_id for interval in intervals if interval.layer_id is not None})
    return [None, *named]


def row_for_y(y: float, rows: Sequence[str | None]) -> str | None:
    index = int((y - HEADER_HEIGHT) // ROW_HEIGHT)
    index = min(max(index, 0), len(rows) - 1)
    return rows[index]


def parse_color(value: object) -> tuple[int, int, int]:
    if not isinstance(value, str):
        return DEFAULT_COLOR
    text = value.strip().lstrip("#")
    if len(text) != 6:
        return DEFAULT_COLOR
    try:
        return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
    except ValueError:
        return DEFAULT_COLOR


def interval_caption(interval: Interval, calendar: CalendarArithmetic = DEFAULT_CALENDAR) -> str:
    label = str(interval.metadata.get("label") or "Untitled Interval")
    return f"{label} ({duration_text(interval.start_time, end_time(interval, calendar))})"


class TimelineGridView(QWidget):
    def __init__(
        self,
        service: IntervalEditorService,
        on_edit_requested: Callable[[str], None] | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setMinimumHeight(HEADER_HEIGHT + ROW_HEIGHT * 2)
        self.setMouseTracking(True)
        self._service = service
        self._on_edit_requested = on_edit_requested
        self._preview: PreviewChanged | None = None
        self._on_change: Callable[[], None] | None = None

    def set_change_listener(self, listener: Callable[[], None] | None) -> None:
        self._on_change = listener

    def refresh(self) -> None:
        geometry = self._service.geometry
        rows = layer_rows(self._service.list_intervals())
        self.setMinimumWidth(int(geometry.total_width) + 1)
        self.setMinimumHeight(HEADER_HEIGHT + ROW_HEIGHT * len(rows))
        self.update()

    def _dispatch(self, kind: PointerKind, x: float, y: float, additive: bool = False) -> None:
        rows = layer_rows(self._service.list_intervals())
        event = PointerEvent(
            kind=kind,
            x=x,
            time_ms=int(time.monotonic() * 1000),
            layer_id=row_for_y(y, rows),
            additive=additive,
        )
        transition = self._service.handle_pointer(event)
        previews = [effect for effect in transition.effects if isinstance(effect, PreviewChanged)]
        if transition.state is InteractionMode.IDLE:
            self._preview = None
        elif previews:
            self._preview = previews[-1]

        edit_id = self._service.take_edit_request()
        if edit_id is not None and self._on_edit_requested is not None:
            self._on_edit_requested(edit_id)
        if self._on_change is not None and transition.state is InteractionMode.IDLE:
            self._on_change()
        self.refresh()

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() != Qt.MouseButton.LeftButton:
            return
        point = event.position()
        additive = bool(event.modifiers() & (Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.MetaModifier))
        self._dispatch(PointerKind.DOWN, point.x(), point.y(), additive)

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self._service.interaction.state is InteractionMode.IDLE:
            return
        point = event.position()
        self._dispatch(PointerKind.MOVE, point.x(), point.y())

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if event.button() != Qt.MouseButton.LeftButton:
            return
        point = event.position()
        additive = bool(event.modifiers() & (Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.MetaModifier))
        self._dispatch(PointerKind.UP, point.x(), point.y(), additive)

    def leaveEvent(self, _event) -> None:  # type: ignore[override]
        if self._service.interaction.state is not InteractionMode.IDLE:
            self._dispatch(PointerKind.LEAVE, 0.0, 0.0)

    def paintEvent(self, _event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(19, 23, 28))
        geometry = self._service.geometry
        intervals = self._service.list_intervals()
        rows = layer_rows(intervals)
        bottom = HEADER_HEIGHT + ROW_HEIGHT * len(rows)

        for index in range(len(rows) + 1):
            y = HEADER_HEIGHT + index * ROW_HEIGHT
            painter.setPen(QPen(QColor(52, 65, 81), 1))
            painter.drawLine(0, y, self.width(), y)

        for line in geometry.grid_lines():
            x = int(line.position)
            color = QColor(84, 100, 122) if line.is_major else QColor(57, 70, 88)
            painter.setPen(QPen(color, 1))
            painter.drawLine(x, HEADER_HEIGHT, x, bottom)
            painter.setPen(QPen(QColor(162, 170, 182), 1))
            painter.drawText(x + 3, HEADER_HEIGHT - 8, line.label)

        selection = self._service.get_selection()
        for interval in intervals:
            left, width = geometry.interval_span(interval)
            top = HEADER_HEIGHT + rows.index(interval.layer_id) * ROW_HEIGHT + 4
            rect = QRectF(left, top, width, ROW_HEIGHT - 8)
            red, green, blue = parse_color(interval.metadata.get("color"))
            painter.setBrush(QColor(red, green, blue, 220))
            outline = QColor(250, 204, 21) if interval.interval_id in selection else QColor(red, green, blue)
            painter.setPen(QPen(outline, 2 if interval.interval_id in selection else 1))
            painter.drawRoundedRect(rect, 4, 4)
            painter.setPen(QPen(QColor(240, 244, 248), 1))
            painter.drawText(rect.adjusted(6, 0, -6, 0), Qt.AlignmentFlag.AlignVCenter, interval_caption(interval, geometry.calendar))

        if self._preview is not None:
            left = geometry.time_to_pixels(self._preview.start_time)
            right = geometry.time_to_pixels(self._preview.end_time)
            fill = QColor(34, 197, 94, 70) if self._preview.valid else QColor(239, 68, 68, 70)
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(fill)
            painter.drawRect(QRectF(min(left, right), HEADER_HEIGHT, abs(right - left), bottom - HEADER_HEIGHT))
