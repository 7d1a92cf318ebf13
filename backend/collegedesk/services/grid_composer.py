"""Turn a flat list of schedule entries into a day x interval grid.

The dynamic grid derives its rows from the boundaries the entries
themselves use, so custom class lengths never leave dead rows. The slot
grid uses configured time slots instead and shows breaks as their own
rows. Entries are duck typed (ORM rows or ``ScheduleOut`` models).
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from collegedesk.core.exceptions import SlotOccupiedError
from collegedesk.core.time_model import DAY_ORDER, DAYS_OF_WEEK, DayOfWeek, TimeInterval
from collegedesk.models.schedule import UNASSIGNED_ROOM
from collegedesk.schemas.schedule import ScheduleCreate


class CellState(str, Enum):
    EMPTY = "empty"
    SPANNED = "spanned"
    ORIGIN = "origin"
    BREAK = "break"


@dataclass(frozen=True)
class GridRow:
    interval: TimeInterval
    is_break: bool = False
    time_slot_id: str | None = None
    label: str | None = None

    @property
    def display_label(self) -> str:
        return self.label or self.interval.label


@dataclass(frozen=True)
class GridCell:
    day: DayOfWeek
    interval_index: int
    state: CellState
    row_span: int = 1
    entry: Any = None


@dataclass
class TimetableGrid:
    rows: list[GridRow] = field(default_factory=list)
    cells: dict[tuple[DayOfWeek, int], GridCell] = field(default_factory=dict)

    @property
    def intervals(self) -> list[TimeInterval]:
        return [row.interval for row in self.rows]

    def cell(self, day: DayOfWeek | str, interval_index: int) -> GridCell:
        return self.cells[(DayOfWeek(day), interval_index)]

    def rendered_cells(self) -> list[GridCell]:
        """Cells that produce markup, in row-major display order."""
        return [
            self.cells[(day, index)]
            for index in range(len(self.rows))
            for day in DAYS_OF_WEEK
            if self.cells[(day, index)].state != CellState.SPANNED
        ]


def _day(entry: Any) -> DayOfWeek:
    return DayOfWeek(entry.day)


def derive_intervals(entries: Iterable[Any]) -> list[TimeInterval]:
    points: set[str] = set()
    for entry in entries:
        points.add(entry.start_time)
        points.add(entry.end_time)
    ordered = sorted(points)
    return [TimeInterval(start, end) for start, end in zip(ordered, ordered[1:])]


def row_span(entry: Any, intervals: Sequence[TimeInterval]) -> int:
    span = sum(
        1 for interval in intervals if interval.start >= entry.start_time and interval.end <= entry.end_time
    )
    return span or 1


def entry_starting_at(entries: Sequence[Any], day: DayOfWeek, start_time: str) -> Any | None:
    # First match wins when two entries collide on the same origin.
    for entry in entries:
        if _day(entry) == day and entry.start_time == start_time:
            return entry
    return None


def is_covered_by_span(entries: Sequence[Any], day: DayOfWeek, start_time: str) -> bool:
    if entry_starting_at(entries, day, start_time) is not None:
        return False
    return any(
        _day(entry) == day and entry.start_time < start_time and entry.end_time > start_time
        for entry in entries
    )


def _compose(entries: Sequence[Any], rows: list[GridRow]) -> TimetableGrid:
    grid = TimetableGrid(rows=rows)
    # Spans count break rows too; a class running through lunch covers it.
    intervals = [row.interval for row in rows]
    for index, row in enumerate(rows):
        for day in DAYS_OF_WEEK:
            key = (day, index)
            if row.is_break:
                covered = is_covered_by_span(entries, day, row.interval.start)
                state = CellState.SPANNED if covered else CellState.BREAK
                grid.cells[key] = GridCell(day=day, interval_index=index, state=state)
                continue
            origin = entry_starting_at(entries, day, row.interval.start)
            if origin is not None:
                grid.cells[key] = GridCell(
                    day=day,
                    interval_index=index,
                    state=CellState.ORIGIN,
                    row_span=row_span(origin, intervals),
                    entry=origin,
                )
            elif is_covered_by_span(entries, day, row.interval.start):
                grid.cells[key] = GridCell(day=day, interval_index=index, state=CellState.SPANNED)
            else:
                grid.cells[key] = GridCell(day=day, interval_index=index, state=CellState.EMPTY)
    return grid


def compose_grid(entries: Iterable[Any]) -> TimetableGrid:
    entries = list(entries)
    return _compose(entries, [GridRow(interval=interval) for interval in derive_intervals(entries)])


def compose_slot_grid(entries: Iterable[Any], time_slots: Iterable[Any]) -> TimetableGrid:
    """Fixed-slot view. ``time_slots`` are active slot configs in display order."""
    entries = list(entries)
    rows = [
        GridRow(
            interval=TimeInterval(slot.start_time, slot.end_time),
            is_break=bool(slot.is_break),
            time_slot_id=getattr(slot, "slot_id", None),
            label=getattr(slot, "label", None),
        )
        for slot in time_slots
    ]
    return _compose(entries, rows)


def entry_at_target(
    entries: Iterable[Any],
    day: DayOfWeek,
    start_time: str,
    end_time: str,
    time_slot_id: str | None = None,
) -> Any | None:
    for entry in entries:
        if _day(entry) != day:
            continue
        if time_slot_id and entry.time_slot_id and entry.time_slot_id == time_slot_id:
            return entry
        if entry.start_time == start_time and entry.end_time == end_time:
            return entry
    return None


def plan_copy(
    entries: Iterable[Any],
    source: Any,
    *,
    day: DayOfWeek | str,
    start_time: str,
    end_time: str,
    time_slot_id: str | None = None,
) -> ScheduleCreate | None:
    """Build the create payload for dragging ``source`` onto another cell.

    Returns ``None`` when dropped back onto its own cell. The copy never
    carries a room so that a room clash is not silently duplicated.
    """
    day = DayOfWeek(day)
    if _day(source) == day and source.start_time == start_time and source.end_time == end_time:
        return None
    if entry_at_target(entries, day, start_time, end_time, time_slot_id) is not None:
        raise SlotOccupiedError(day.value, start_time, end_time)
    return ScheduleCreate(
        academic_year=source.academic_year,
        semester=source.semester,
        department_id=source.department_id,
        class_section=source.class_section,
        timetable_type=source.timetable_type,
        day=day,
        time_slot_id=time_slot_id,
        start_time=start_time,
        end_time=end_time,
        subject_id=source.subject_id,
        teacher_id=source.teacher_id,
        room_id=UNASSIGNED_ROOM,
        session_type=source.session_type,
        duration=source.duration,
        is_mandatory=source.is_mandatory,
        repeat_weekly=source.repeat_weekly,
        status=source.status,
    )


def _ordered(entries: Iterable[Any]) -> list[Any]:
    return sorted(entries, key=lambda entry: (DAY_ORDER[_day(entry)], entry.start_time))


def group_by_teacher(entries: Iterable[Any]) -> dict[str, list[Any]]:
    groups: dict[str, list[Any]] = {}
    for entry in entries:
        groups.setdefault(entry.teacher_id, []).append(entry)
    return {key: _ordered(items) for key, items in groups.items()}


def group_by_room(entries: Iterable[Any]) -> dict[str, list[Any]]:
    groups: dict[str, list[Any]] = {}
    for entry in entries:
        groups.setdefault(entry.room_id or UNASSIGNED_ROOM, []).append(entry)
    return {key: _ordered(items) for key, items in groups.items()}
