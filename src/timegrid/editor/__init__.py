"""Interval editor exports."""

from timegrid.editor.facade import IntervalEditor
from timegrid.editor.service import IntervalEditorService

__all__ = ["IntervalEditor", "IntervalEditorService"]
