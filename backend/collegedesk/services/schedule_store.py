"""Persistence for schedule entries, keyed by scope.

Route handlers call into these helpers; every write records an activity
row in the same session and commits once at the end.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from collegedesk.core.exceptions import ResourceNotFoundError
from collegedesk.core.time_model import DAY_ORDER, DayOfWeek
from collegedesk.models.department import Department
from collegedesk.models.faculty import Teacher
from collegedesk.models.schedule import Schedule, ScheduleStatus
from collegedesk.models.subject import Subject
from collegedesk.models.user import User
from collegedesk.schemas.schedule import ScheduleCreate, ScheduleOut, ScheduleScope, ScheduleUpdate
from collegedesk.services.audit import log_activity

logger = logging.getLogger(__name__)


def _scope_filters(scope: ScheduleScope) -> list:
    return [
        Schedule.academic_year == scope.academic_year,
        Schedule.semester == scope.semester,
        Schedule.department_id == scope.department_id,
        Schedule.class_section == scope.class_section,
    ]


def sort_key(entry) -> tuple[int, str]:
    return DAY_ORDER[DayOfWeek(entry.day)], entry.start_time


def list_scope(db: Session, scope: ScheduleScope) -> list[Schedule]:
    statement = select(Schedule).where(*_scope_filters(scope))
    if scope.timetable_type is not None:
        statement = statement.where(Schedule.timetable_type == scope.timetable_type)
    # Enum ordering differs between backends, so order by display day here.
    return sorted(db.execute(statement).scalars(), key=sort_key)


def get_schedule(db: Session, schedule_id: str) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise ResourceNotFoundError("Schedule", schedule_id)
    return schedule


def _ensure_references(db: Session, *, department_id: str | None, subject_id: str, teacher_id: str) -> None:
    if department_id is not None and db.get(Department, department_id) is None:
        raise ResourceNotFoundError("Department", department_id)
    if db.get(Subject, subject_id) is None:
        raise ResourceNotFoundError("Subject", subject_id)
    if db.get(Teacher, teacher_id) is None:
        raise ResourceNotFoundError("Teacher", teacher_id)


def create_schedule(db: Session, payload: ScheduleCreate, *, actor: User | None) -> Schedule:
    _ensure_references(
        db,
        department_id=payload.department_id,
        subject_id=payload.subject_id,
        teacher_id=payload.teacher_id,
    )
    schedule = Schedule(**payload.model_dump())
    db.add(schedule)
    db.flush()
    log_activity(
        db,
        user=actor,
        action="schedule.created",
        entity_type="schedule",
        entity_id=schedule.id,
        details={"day": schedule.day.value, "startTime": schedule.start_time, "endTime": schedule.end_time},
    )
    db.commit()
    db.refresh(schedule)
    logger.info(
        "Created schedule %s for %s sem %s %s/%s",
        schedule.id,
        schedule.academic_year,
        schedule.semester,
        schedule.department_id,
        schedule.class_section,
    )
    return schedule


def replace_schedule(db: Session, schedule_id: str, payload: ScheduleUpdate, *, actor: User | None) -> Schedule:
    schedule = get_schedule(db, schedule_id)
    _ensure_references(db, department_id=None, subject_id=payload.subject_id, teacher_id=payload.teacher_id)
    data = payload.model_dump()
    for key, value in data.items():
        setattr(schedule, key, value)
    log_activity(
        db,
        user=actor,
        action="schedule.updated",
        entity_type="schedule",
        entity_id=schedule.id,
        details={"fields": sorted(data.keys())},
    )
    db.commit()
    db.refresh(schedule)
    logger.info("Updated schedule %s", schedule.id)
    return schedule


def delete_schedule(db: Session, schedule_id: str, *, actor: User | None) -> None:
    schedule = get_schedule(db, schedule_id)
    log_activity(db, user=actor, action="schedule.deleted", entity_type="schedule", entity_id=schedule.id)
    db.delete(schedule)
    db.commit()
    logger.info("Deleted schedule %s", schedule_id)


def publish_scope(db: Session, scope: ScheduleScope, *, actor: User | None) -> int:
    result = db.execute(
        update(Schedule)
        .where(*_scope_filters(scope), Schedule.status == ScheduleStatus.DRAFT)
        .values(status=ScheduleStatus.PUBLISHED)
        .execution_options(synchronize_session=False)
    )
    count = result.rowcount or 0
    if count == 0:
        db.rollback()
        raise ResourceNotFoundError("Draft schedules", _scope_label(scope))
    log_activity(
        db,
        user=actor,
        action="schedule.published",
        entity_type="schedule_scope",
        entity_id=_scope_label(scope),
        details={"count": count},
    )
    db.commit()
    logger.info("Published %d schedule(s) in %s", count, _scope_label(scope))
    return count


def delete_scope(db: Session, scope: ScheduleScope, *, actor: User | None) -> int:
    result = db.execute(
        delete(Schedule).where(*_scope_filters(scope)).execution_options(synchronize_session=False)
    )
    count = result.rowcount or 0
    log_activity(
        db,
        user=actor,
        action="schedule.bulk_deleted",
        entity_type="schedule_scope",
        entity_id=_scope_label(scope),
        details={"count": count},
    )
    db.commit()
    logger.info("Deleted %d schedule(s) in %s", count, _scope_label(scope))
    return count


def _scope_label(scope: ScheduleScope) -> str:
    return f"{scope.academic_year}/{scope.semester}/{scope.department_id}/{scope.class_section}"


def serialize_schedules(db: Session, rows: Sequence[Schedule]) -> list[ScheduleOut]:
    """Join display names for subjects, teachers and departments in three queries."""
    if not rows:
        return []
    subject_ids = {row.subject_id for row in rows}
    teacher_ids = {row.teacher_id for row in rows}
    department_ids = {row.department_id for row in rows}
    subjects = {
        item.id: item for item in db.execute(select(Subject).where(Subject.id.in_(subject_ids))).scalars()
    }
    teachers = {
        item.id: item for item in db.execute(select(Teacher).where(Teacher.id.in_(teacher_ids))).scalars()
    }
    departments = dict(
        db.execute(select(Department.id, Department.name).where(Department.id.in_(department_ids))).all()
    )

    serialized: list[ScheduleOut] = []
    for row in rows:
        subject = subjects.get(row.subject_id)
        teacher = teachers.get(row.teacher_id)
        out = ScheduleOut.model_validate(row)
        out.subject_name = subject.name if subject else None
        out.subject_code = subject.code if subject else None
        out.teacher_name = teacher.name if teacher else None
        out.teacher_faculty_id = teacher.faculty_id if teacher else None
        out.room_name = row.room_id
        out.department_name = departments.get(row.department_id)
        serialized.append(out)
    return serialized


def serialize_schedule(db: Session, row: Schedule) -> ScheduleOut:
    return serialize_schedules(db, [row])[0]
