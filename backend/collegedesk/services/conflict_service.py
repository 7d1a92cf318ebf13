from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from collegedesk.core.exceptions import ServiceUnavailableError
from collegedesk.core.time_model import DayOfWeek, intervals_overlap
from collegedesk.models.faculty import Teacher
from collegedesk.models.schedule import UNASSIGNED_ROOM, Schedule
from collegedesk.models.subject import Subject
from collegedesk.schemas.schedule import ConflictCheckRequest

logger = logging.getLogger(__name__)


class ConflictType(str, Enum):
    TEACHER = "TEACHER"
    ROOM = "ROOM"
    CLASS = "CLASS"


@dataclass(frozen=True)
class ConflictCandidate:
    academic_year: str
    semester: int
    day: DayOfWeek
    start_time: str
    end_time: str
    department_id: str
    class_section: str
    teacher_id: str | None = None
    room_id: str | None = None

    @classmethod
    def from_request(cls, payload: ConflictCheckRequest) -> "ConflictCandidate":
        return cls(
            academic_year=payload.academic_year,
            semester=payload.semester,
            day=payload.day,
            start_time=payload.start_time,
            end_time=payload.end_time,
            department_id=payload.department_id,
            class_section=payload.class_section,
            teacher_id=payload.teacher_id,
            room_id=payload.room_id,
        )


@dataclass(frozen=True)
class Conflict:
    type: ConflictType
    message: str
    conflicting_entry: Any = None


@dataclass
class ConflictReport:
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def is_clear(self) -> bool:
        return not self.conflicts

    @property
    def types(self) -> list[ConflictType]:
        return [item.type for item in self.conflicts]

    def __len__(self) -> int:
        return len(self.conflicts)

    def __iter__(self):
        return iter(self.conflicts)


def has_assigned_room(room_id: str | None) -> bool:
    if room_id is None:
        return False
    cleaned = room_id.strip()
    return bool(cleaned) and cleaned.upper() != UNASSIGNED_ROOM


class ConflictService:
    """Pairwise overlap check of one candidate against same-day entries.

    ``existing`` is every entry sharing the candidate's (year, semester, day),
    already stripped of the entry being edited. Entries are duck typed: ORM
    rows and ``ScheduleOut`` models both work.
    """

    def __init__(
        self,
        existing: Iterable[Any],
        *,
        subject_names: Mapping[str, str] | None = None,
        teacher_names: Mapping[str, str] | None = None,
    ):
        self.existing = list(existing)
        self.subject_names = subject_names or {}
        self.teacher_names = teacher_names or {}

    def _subject_label(self, entry: Any) -> str:
        return self.subject_names.get(entry.subject_id) or getattr(entry, "subject_name", None) or "a class"

    def _teacher_label(self, entry: Any) -> str:
        return self.teacher_names.get(entry.teacher_id) or getattr(entry, "teacher_name", None) or "Unknown Teacher"

    def detect_conflicts(self, candidate: ConflictCandidate) -> ConflictReport:
        report = ConflictReport()
        for entry in self.existing:
            if not intervals_overlap(candidate.start_time, candidate.end_time, entry.start_time, entry.end_time):
                continue

            if candidate.teacher_id and entry.teacher_id and entry.teacher_id == candidate.teacher_id:
                report.conflicts.append(
                    Conflict(
                        type=ConflictType.TEACHER,
                        message=f"Teacher already assigned to {entry.class_section} at this time",
                        conflicting_entry=entry,
                    )
                )

            if (
                has_assigned_room(candidate.room_id)
                and has_assigned_room(entry.room_id)
                and entry.room_id.strip() == candidate.room_id.strip()
            ):
                report.conflicts.append(
                    Conflict(
                        type=ConflictType.ROOM,
                        message=(
                            f"Room {entry.room_id} already booked for {self._subject_label(entry)} "
                            f"by {self._teacher_label(entry)}"
                        ),
                        conflicting_entry=entry,
                    )
                )

            if entry.department_id == candidate.department_id and entry.class_section == candidate.class_section:
                report.conflicts.append(
                    Conflict(
                        type=ConflictType.CLASS,
                        message=(
                            f"Class already has {self._subject_label(entry)} with "
                            f"{self._teacher_label(entry)} at this time"
                        ),
                        conflicting_entry=entry,
                    )
                )
        return report


def list_same_day_schedules(
    db: Session,
    *,
    academic_year: str,
    semester: int,
    day: DayOfWeek,
    exclude_id: str | None = None,
) -> list[Schedule]:
    statement = select(Schedule).where(
        Schedule.academic_year == academic_year,
        Schedule.semester == semester,
        Schedule.day == day,
    )
    if exclude_id:
        statement = statement.where(Schedule.id != exclude_id)
    return list(db.execute(statement).scalars())


def check_schedule_conflicts(
    db: Session,
    candidate: ConflictCandidate,
    *,
    exclude_id: str | None = None,
) -> ConflictReport:
    try:
        existing = list_same_day_schedules(
            db,
            academic_year=candidate.academic_year,
            semester=candidate.semester,
            day=candidate.day,
            exclude_id=exclude_id,
        )
        subject_ids = {row.subject_id for row in existing}
        teacher_ids = {row.teacher_id for row in existing}
        subject_names = (
            dict(db.execute(select(Subject.id, Subject.name).where(Subject.id.in_(subject_ids))).all())
            if subject_ids
            else {}
        )
        teacher_names = (
            dict(db.execute(select(Teacher.id, Teacher.name).where(Teacher.id.in_(teacher_ids))).all())
            if teacher_ids
            else {}
        )
    except SQLAlchemyError as exc:
        logger.exception("Conflict check could not read schedules for %s", candidate.day.value)
        raise ServiceUnavailableError("Conflict check unavailable, try again later") from exc

    report = ConflictService(
        existing,
        subject_names=subject_names,
        teacher_names=teacher_names,
    ).detect_conflicts(candidate)
    logger.debug(
        "Conflict check %s %s-%s against %d entries: %d conflict(s)",
        candidate.day.value,
        candidate.start_time,
        candidate.end_time,
        len(existing),
        len(report),
    )
    return report
