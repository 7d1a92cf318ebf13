"""Timetable schedule endpoints.

Literal sub-paths (``check-conflicts``, ``publish``, ``bulk-delete``,
``grid``, ``groups``) are registered before ``/{schedule_id}`` so they are
never captured as ids.
"""
import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from collegedesk.api.deps import get_db, require_roles
from collegedesk.core.time_model import DAYS_OF_WEEK
from collegedesk.models.schedule import TimetableType
from collegedesk.models.user import User, UserRole
from collegedesk.schemas.common import CountOut, MessageOut
from collegedesk.schemas.grid import GridCellOut, GridIntervalOut, ScheduleGroupOut, TimetableGridOut
from collegedesk.schemas.schedule import (
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictOut,
    ScheduleCopyRequest,
    ScheduleCopyResult,
    ScheduleCreate,
    ScheduleOut,
    ScheduleScope,
    ScheduleScopeIn,
    ScheduleUpdate,
)
from collegedesk.services import schedule_store
from collegedesk.services.conflict_service import ConflictCandidate, check_schedule_conflicts
from collegedesk.services.grid_composer import (
    compose_grid,
    compose_slot_grid,
    group_by_room,
    group_by_teacher,
    plan_copy,
)
from collegedesk.services.time_slots import list_active_time_slots

router = APIRouter()
logger = logging.getLogger(__name__)


def scope_query(
    academic_year: str | None = Query(default=None, alias="academicYear"),
    semester: str | None = Query(default=None),
    department_id: str | None = Query(default=None, alias="departmentId"),
    class_section: str | None = Query(default=None, alias="classSection"),
    timetable_type: TimetableType | None = Query(default=None, alias="timetableType"),
) -> ScheduleScope:
    return ScheduleScopeIn(
        academic_year=academic_year,
        semester=semester,
        department_id=department_id,
        class_section=class_section,
        timetable_type=timetable_type,
    ).require()


@router.get("", response_model=list[ScheduleOut])
def list_schedules(
    scope: ScheduleScope = Depends(scope_query),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[ScheduleOut]:
    return schedule_store.serialize_schedules(db, schedule_store.list_scope(db, scope))


@router.post("", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule = schedule_store.create_schedule(db, payload, actor=current_user)
    return schedule_store.serialize_schedule(db, schedule)


@router.post("/check-conflicts", response_model=ConflictCheckResponse)
def check_conflicts(
    payload: ConflictCheckRequest,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ConflictCheckResponse:
    report = check_schedule_conflicts(db, ConflictCandidate.from_request(payload), exclude_id=payload.schedule_id)
    if report.is_clear:
        return ConflictCheckResponse()
    entries = schedule_store.serialize_schedules(db, [item.conflicting_entry for item in report])
    return ConflictCheckResponse(
        conflicts=[
            ConflictOut(type=item.type.value, message=item.message, conflicting_slot=entry)
            for item, entry in zip(report, entries)
        ]
    )


@router.post("/publish", response_model=CountOut)
def publish_schedules(
    payload: ScheduleScopeIn,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> CountOut:
    count = schedule_store.publish_scope(db, payload.require(), actor=current_user)
    return CountOut(message=f"Published {count} schedule(s) successfully", count=count)


@router.delete("/bulk-delete", response_model=CountOut)
def bulk_delete_schedules(
    payload: ScheduleScopeIn,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> CountOut:
    count = schedule_store.delete_scope(db, payload.require(), actor=current_user)
    return CountOut(message=f"Deleted {count} schedule(s) successfully", count=count)


@router.get("/grid", response_model=TimetableGridOut)
def get_schedule_grid(
    mode: Literal["dynamic", "slots"] = Query(default="dynamic"),
    scope: ScheduleScope = Depends(scope_query),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> TimetableGridOut:
    entries = schedule_store.serialize_schedules(db, schedule_store.list_scope(db, scope))
    if mode == "slots":
        grid = compose_slot_grid(entries, list_active_time_slots(db))
    else:
        grid = compose_grid(entries)

    return TimetableGridOut(
        mode=mode,
        days=list(DAYS_OF_WEEK),
        intervals=[
            GridIntervalOut(
                index=index,
                start_time=row.interval.start,
                end_time=row.interval.end,
                label=row.display_label,
                is_break=row.is_break,
                time_slot_id=row.time_slot_id,
            )
            for index, row in enumerate(grid.rows)
        ],
        cells=[
            GridCellOut(
                day=cell.day,
                interval_index=cell.interval_index,
                state=cell.state.value,
                row_span=cell.row_span,
                schedule_id=cell.entry.id if cell.entry is not None else None,
            )
            for cell in grid.rendered_cells()
        ],
        schedules=entries,
    )


@router.get("/groups", response_model=list[ScheduleGroupOut])
def get_schedule_groups(
    by: Literal["teacher", "room"] = Query(default="teacher"),
    scope: ScheduleScope = Depends(scope_query),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[ScheduleGroupOut]:
    entries = schedule_store.serialize_schedules(db, schedule_store.list_scope(db, scope))
    if by == "room":
        groups = group_by_room(entries)
        labels = {key: key for key in groups}
    else:
        groups = group_by_teacher(entries)
        labels = {key: items[0].teacher_name or key for key, items in groups.items()}
    return [
        ScheduleGroupOut(key=key, label=labels[key], schedules=groups[key])
        for key in sorted(groups, key=lambda item: labels[item].lower())
    ]


@router.get("/{schedule_id}", response_model=ScheduleOut)
def get_schedule(
    schedule_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return schedule_store.serialize_schedule(db, schedule_store.get_schedule(db, schedule_id))


@router.put("/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: str,
    payload: ScheduleUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule = schedule_store.replace_schedule(db, schedule_id, payload, actor=current_user)
    return schedule_store.serialize_schedule(db, schedule)


@router.delete("/{schedule_id}", response_model=MessageOut)
def delete_schedule(
    schedule_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> MessageOut:
    schedule_store.delete_schedule(db, schedule_id, actor=current_user)
    return MessageOut(message="Schedule deleted successfully")


@router.post("/{schedule_id}/copy", response_model=ScheduleCopyResult)
def copy_schedule(
    schedule_id: str,
    payload: ScheduleCopyRequest,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ScheduleCopyResult:
    source = schedule_store.get_schedule(db, schedule_id)
    scope = ScheduleScope(
        academic_year=source.academic_year,
        semester=source.semester,
        department_id=source.department_id,
        class_section=source.class_section,
        timetable_type=source.timetable_type,
    )
    plan = plan_copy(
        schedule_store.list_scope(db, scope),
        source,
        day=payload.day,
        start_time=payload.start_time,
        end_time=payload.end_time,
        time_slot_id=payload.time_slot_id,
    )
    if plan is None:
        return ScheduleCopyResult(copied=False)
    copy = schedule_store.create_schedule(db, plan, actor=current_user)
    logger.info("Copied schedule %s to %s %s-%s", schedule_id, payload.day.value, payload.start_time, payload.end_time)
    return ScheduleCopyResult(copied=True, schedule=schedule_store.serialize_schedule(db, copy))
