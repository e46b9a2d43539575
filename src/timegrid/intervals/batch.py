"""Batch transforms over a selection: copy, paste, duplicate, scale and delete.

Every transform is returned as a list of create/update/delete commands; the
engine itself only keeps the clipboard.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from timegrid.intervals.calendar_math import DEFAULT_CALENDAR, CalendarArithmetic
from timegrid.intervals.commands import CreateIntervalCommand, DeleteIntervalCommand, UpdateIntervalCommand
from timegrid.intervals.models import Interval, clamp_grid_amount, copy_metadata
from timegrid.intervals.spans import end_time

logger = logging.getLogger(__name__)


class BatchTransformEngine:
    def __init__(self, calendar: CalendarArithmetic | None = None, clear_clipboard_on_paste: bool = True) -> None:
        self._calendar = calendar or DEFAULT_CALENDAR
        self._clear_clipboard_on_paste = clear_clipboard_on_paste
        self._clipboard: list[Interval] = []

    @property
    def clipboard(self) -> list[Interval]:
        return [interval.clone(fresh_id=False) for interval in self._clipboard]

    def has_clipboard(self) -> bool:
        return bool(self._clipboard)

    def clear_clipboard(self) -> None:
        self._clipboard = []

    def copy(self, selected: Sequence[Interval]) -> int:
        if not selected:
            return 0
        self._clipboard = [interval.clone(fresh_id=True) for interval in selected]
        return len(self._clipboard)

    def paste(self, targets: Sequence[Interval] = ()) -> list[CreateIntervalCommand]:
        """Place the clipboard right after the latest targeted interval.

        ``targets`` is the current selection; when it is empty the clipboard
        entries themselves are the anchor set.

        Created intervals take the ids the clipboard entries got at copy time;
        the store hands out fresh ones when a kept clipboard is pasted again.
        """
        if not self._clipboard:
            return []
        anchor_set = list(targets) or self._clipboard
        anchor = self._latest_end(anchor_set)
        commands = self._place_after(self._clipboard, anchor, keep_ids=True)
        if self._clear_clipboard_on_paste:
            self._clipboard = []
        return commands

    def duplicate(self, selected: Sequence[Interval]) -> list[CreateIntervalCommand]:
        if not selected:
            return []
        return self._place_after(selected, self._latest_end(selected))

    def scale(self, selected: Sequence[Interval], factor: float) -> list[UpdateIntervalCommand]:
        """Dilate positions and durations around the earliest selected start."""
        if factor <= 0:
            raise ValueError("scale factor must be positive")
        if not selected or factor == 1:
            return []

        anchor = min(interval.start_time for interval in selected)
        commands: list[UpdateIntervalCommand] = []
        for interval in selected:
            offset = self._calendar.difference(anchor, interval.start_time, interval.grid_unit)
            new_start = self._calendar.advance_fractional(anchor, interval.grid_unit, offset * factor)
            new_amount = clamp_grid_amount(interval.grid_amount * factor)
            if new_start == interval.start_time and new_amount == interval.grid_amount:
                continue
            commands.append(
                UpdateIntervalCommand(
                    interval_id=interval.interval_id,
                    start_time=new_start,
                    grid_amount=new_amount,
                )
            )
        logger.debug("scale x%s anchored at %s produced %d updates", factor, anchor, len(commands))
        return commands

    def delete(self, selected_ids: Iterable[str]) -> list[DeleteIntervalCommand]:
        return [DeleteIntervalCommand(interval_id=interval_id) for interval_id in sorted(set(selected_ids))]

    def _latest_end(self, intervals: Sequence[Interval]) -> int:
        return max(end_time(interval, self._calendar) for interval in intervals)

    def _place_after(
        self,
        group: Sequence[Interval],
        anchor: int,
        keep_ids: bool = False,
    ) -> list[CreateIntervalCommand]:
        group_start = min(interval.start_time for interval in group)
        commands: list[CreateIntervalCommand] = []
        for interval in group:
            offset = self._calendar.difference(group_start, interval.start_time, interval.grid_unit)
            commands.append(
                CreateIntervalCommand(
                    start_time=self._calendar.advance_fractional(anchor, interval.grid_unit, offset),
                    grid_unit=interval.grid_unit,
                    grid_amount=interval.grid_amount,
                    metadata=copy_metadata(interval.metadata),
                    layer_id=interval.layer_id,
                    interval_id=interval.interval_id if keep_ids else None,
                )
            )
        return commands
