"""Desktop UI: calendar grid timeline with gesture editing and batch tools."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from timegrid.config import EditorSettings
from timegrid.editor import IntervalEditor, IntervalEditorService
from timegrid.intervals.models import GRID_UNIT_LABELS, GRID_VALUE_LIMITS, SUPPORTED_GRID_UNITS, GridSettings
from timegrid.intervals.spans import format_timestamp
from timegrid.ui.timeline_view import TimelineGridView

try:
    from PySide6.QtWidgets import (
        QApplication,
        QComboBox,
        QFileDialog,
        QGroupBox,
        QHBoxLayout,
        QInputDialog,
        QLabel,
        QMainWindow,
        QMessageBox,
        QPushButton,
        QScrollArea,
        QSpinBox,
        QVBoxLayout,
        QWidget,
    )
except ImportError:  # pragma: no cover - runtime-only path
    QApplication = None  # type: ignore[assignment]
    QComboBox = object  # type: ignore[assignment]
    QFileDialog = object  # type: ignore[assignment]
    QGroupBox = object  # type: ignore[assignment]
    QHBoxLayout = object  # type: ignore[assignment]
    QInputDialog = object  # type: ignore[assignment]
    QLabel = object  # type: ignore[assignment]
    QMainWindow = object  # type: ignore[assignment]
    QMessageBox = object  # type: ignore[assignment]
    QPushButton = object  # type: ignore[assignment]
    QScrollArea = object  # type: ignore[assignment]
    QSpinBox = object  # type: ignore[assignment]
    QVBoxLayout = object  # type: ignore[assignment]
    QWidget = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


class TimegridWindow(QMainWindow):
    def __init__(self, service: IntervalEditorService | None = None) -> None:
        super().__init__()
        self.setWindowTitle("timegrid")
        self.resize(1280, 520)

        self._service = service or IntervalEditorService(EditorSettings.from_env())
        self._editor = IntervalEditor(self._service)
        self._build_ui()
        self._refresh()

    def _build_ui(self) -> None:
        root = QWidget()
        layout = QVBoxLayout(root)
        layout.setContentsMargins(10, 10, 10, 10)
        layout.setSpacing(10)
        layout.addWidget(self._build_grid_panel())
        layout.addWidget(self._build_batch_panel())

        self.timeline_view = TimelineGridView(self._service, on_edit_requested=self._edit_interval)
        self.timeline_view.set_change_listener(self._refresh)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self.timeline_view)
        layout.addWidget(scroll, 1)

        self.status_label = QLabel("Ready.")
        layout.addWidget(self.status_label)
        self.setCentralWidget(root)

    def _build_grid_panel(self) -> QGroupBox:
        box = QGroupBox("Grid")
        row = QHBoxLayout(box)

        self.unit_combo = QComboBox()
        for unit in SUPPORTED_GRID_UNITS:
            self.unit_combo.addItem(GRID_UNIT_LABELS[unit], unit)
        grid = self._service.grid_settings
        self.unit_combo.setCurrentIndex(SUPPORTED_GRID_UNITS.index(grid.unit))
        self.unit_combo.currentIndexChanged.connect(self._on_grid_unit_changed)

        self.value_spin = QSpinBox()
        low, high = GRID_VALUE_LIMITS[grid.unit]
        self.value_spin.setRange(low, high)
        self.value_spin.setValue(grid.value)
        self.value_spin.valueChanged.connect(self._apply_grid_settings)

        open_button = QPushButton("Open...")
        open_button.clicked.connect(self._open_document)
        save_button = QPushButton("Save...")
        save_button.clicked.connect(self._save_document)

        row.addWidget(QLabel("Unit"))
        row.addWidget(self.unit_combo)
        row.addWidget(QLabel("Every"))
        row.addWidget(self.value_spin)
        row.addStretch(1)
        row.addWidget(open_button)
        row.addWidget(save_button)
        return box

    def _build_batch_panel(self) -> QGroupBox:
        box = QGroupBox("Selection")
        row = QHBoxLayout(box)
        self.selection_label = QLabel("0 selected")
        row.addWidget(self.selection_label)
        row.addStretch(1)
        actions = (
            ("Copy", self._editor.copy),
            ("Paste", self._editor.paste),
            ("Duplicate", self._editor.duplicate),
            ("x2", self._service.double),
            ("x0.5", self._service.halve),
            ("Delete", self._editor.delete),
            ("Clear", self._editor.clear_selection),
        )
        for label, action in actions:
            button = QPushButton(label)
            button.clicked.connect(lambda _checked=False, run=action, name=label: self._run_batch(name, run))
            row.addWidget(button)
        return box

    def _run_batch(self, name: str, action) -> None:
        try:
            action()
        except (KeyError, ValueError) as exc:
            self._show_error(str(exc))
            return
        self.status_label.setText(f"{name} done.")
        self._refresh()

    def _on_grid_unit_changed(self, _index: int) -> None:
        unit = self.unit_combo.currentData()
        low, high = GRID_VALUE_LIMITS[unit]
        self.value_spin.blockSignals(True)
        self.value_spin.setRange(low, high)
        self.value_spin.setValue(min(max(self.value_spin.value(), low), high))
        self.value_spin.blockSignals(False)
        self._apply_grid_settings()

    def _apply_grid_settings(self, *_args) -> None:
        settings = GridSettings(unit=self.unit_combo.currentData(), value=self.value_spin.value())
        try:
            self._editor.set_grid_settings(settings)
        except (RuntimeError, ValueError) as exc:
            self._show_error(str(exc))
            return
        self.status_label.setText(f"Grid: {settings.label()}")
        self._refresh()

    def _edit_interval(self, interval_id: str) -> None:
        interval = self._service.get_interval(interval_id)
        if interval is None:
            return
        current = str(interval.metadata.get("label", ""))
        label, accepted = QInputDialog.getText(self, "Edit interval", "Label", text=current)
        if not accepted:
            return
        metadata = dict(interval.metadata)
        metadata["label"] = label.strip()
        self._editor.update_interval(interval_id, metadata=metadata)
        self._refresh()

    def _open_document(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Open timeline", "", "Timeline (*.json)")
        if not file_path:
            return
        try:
            data = json.loads(Path(file_path).read_text(encoding="utf-8"))
            count = self._editor.import_document(data)
        except (OSError, RuntimeError, ValueError) as exc:
            self._show_error(str(exc))
            return
        grid = self._service.grid_settings
        self.unit_combo.blockSignals(True)
        self.unit_combo.setCurrentIndex(SUPPORTED_GRID_UNITS.index(grid.unit))
        self.unit_combo.blockSignals(False)
        self.value_spin.blockSignals(True)
        self.value_spin.setRange(*GRID_VALUE_LIMITS[grid.unit])
        self.value_spin.setValue(grid.value)
        self.value_spin.blockSignals(False)
        self.status_label.setText(f"Loaded {count} intervals from {Path(file_path).name}")
        self._refresh()

    def _save_document(self) -> None:
        file_path, _ = QFileDialog.getSaveFileName(self, "Save timeline", "timeline.json", "Timeline (*.json)")
        if not file_path:
            return
        document = self._editor.export_document()
        try:
            Path(file_path).write_text(document.model_dump_json(indent=2), encoding="utf-8")
        except OSError as exc:
            self._show_error(str(exc))
            return
        self.status_label.setText(f"Saved {len(document.intervals)} intervals.")

    def _refresh(self) -> None:
        selection = self._service.selected_intervals()
        if selection:
            first = min(interval.start_time for interval in selection)
            since = format_timestamp(first, "%Y-%m-%d", self._service.calendar)
            self.selection_label.setText(f"{len(selection)} selected (from {since})")
        else:
            self.selection_label.setText("0 selected")
        self.timeline_view.refresh()

    def _show_error(self, message: str) -> None:
        logger.warning("%s", message)
        QMessageBox.critical(self, "Error", message)


def main() -> int:
    if QApplication is None:  # pragma: no cover - runtime-only path
        print("PySide6 is not installed. Run `pip install -e .[ui]`.")
        return 1
    logging.basicConfig(level=logging.INFO)
    app = QApplication(sys.argv)
    window = TimegridWindow()
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
