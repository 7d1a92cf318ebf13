import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from collegedesk.api.deps import get_db, require_roles
from collegedesk.core.exceptions import DuplicateResourceError, RelatedRecordsError, ResourceNotFoundError
from collegedesk.models.department import Department
from collegedesk.models.faculty import Teacher
from collegedesk.models.schedule import Schedule
from collegedesk.models.subject import Subject
from collegedesk.models.user import User, UserRole
from collegedesk.schemas.common import MessageOut
from collegedesk.schemas.department import (
    DepartmentCounts,
    DepartmentCreate,
    DepartmentDetailOut,
    DepartmentOut,
    DepartmentSubjectOut,
    DepartmentUpdate,
)
from collegedesk.services.audit import log_activity

router = APIRouter()
logger = logging.getLogger(__name__)


def _count_by_department(db: Session, column) -> dict[str, int]:
    return dict(db.execute(select(column, func.count()).group_by(column)).all())


def department_counts(db: Session, department_id: str) -> DepartmentCounts:
    return DepartmentCounts(
        teachers=db.scalar(select(func.count()).select_from(Teacher).where(Teacher.department_id == department_id))
        or 0,
        subjects=db.scalar(select(func.count()).select_from(Subject).where(Subject.department_id == department_id))
        or 0,
        schedules=db.scalar(
            select(func.count()).select_from(Schedule).where(Schedule.department_id == department_id)
        )
        or 0,
    )


def _detail(db: Session, department: Department) -> DepartmentDetailOut:
    subjects = db.execute(
        select(Subject).where(Subject.department_id == department.id).order_by(Subject.semester, Subject.name)
    ).scalars()
    return DepartmentDetailOut(
        id=department.id,
        name=department.name,
        code=department.code,
        counts=department_counts(db, department.id),
        subjects=[
            DepartmentSubjectOut(
                id=item.id, name=item.name, code=item.code, category=item.category.value, semester=item.semester
            )
            for item in subjects
        ],
    )


def _ensure_unique(db: Session, payload: DepartmentCreate, exclude_id: str | None = None) -> None:
    name_query = select(Department.id).where(func.lower(Department.name) == payload.name.lower())
    code_query = select(Department.id).where(Department.code == payload.code)
    if exclude_id:
        name_query = name_query.where(Department.id != exclude_id)
        code_query = code_query.where(Department.id != exclude_id)
    if db.execute(name_query).first() is not None:
        raise DuplicateResourceError("Department name already exists", field="name")
    if db.execute(code_query).first() is not None:
        raise DuplicateResourceError("Department code already exists", field="code")


def _get_department(db: Session, department_id: str) -> Department:
    department = db.get(Department, department_id)
    if department is None:
        raise ResourceNotFoundError("Department", department_id)
    return department


@router.get("/", response_model=list[DepartmentOut])
def list_departments(
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    db: Session = Depends(get_db),
) -> list[DepartmentOut]:
    teachers = _count_by_department(db, Teacher.department_id)
    subjects = _count_by_department(db, Subject.department_id)
    schedules = _count_by_department(db, Schedule.department_id)
    departments = db.execute(select(Department).order_by(Department.name)).scalars()
    return [
        DepartmentOut(
            id=item.id,
            name=item.name,
            code=item.code,
            counts=DepartmentCounts(
                teachers=teachers.get(item.id, 0),
                subjects=subjects.get(item.id, 0),
                schedules=schedules.get(item.id, 0),
            ),
        )
        for item in departments
    ]


@router.get("/by-code/{code}", response_model=DepartmentDetailOut)
def get_department_by_code(
    code: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    db: Session = Depends(get_db),
) -> DepartmentDetailOut:
    department = db.execute(
        select(Department).where(func.upper(Department.code) == code.strip().upper())
    ).scalar_one_or_none()
    if department is None:
        raise ResourceNotFoundError("Department", code)
    return _detail(db, department)


@router.get("/{department_id}", response_model=DepartmentDetailOut)
def get_department(
    department_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    db: Session = Depends(get_db),
) -> DepartmentDetailOut:
    return _detail(db, _get_department(db, department_id))


@router.post("/", response_model=DepartmentOut, status_code=status.HTTP_201_CREATED)
def create_department(
    payload: DepartmentCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> DepartmentOut:
    _ensure_unique(db, payload)
    department = Department(name=payload.name, code=payload.code)
    db.add(department)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="department.created",
        entity_type="department",
        entity_id=department.id,
        details={"code": department.code},
    )
    db.commit()
    db.refresh(department)
    logger.info("Created department %s (%s)", department.code, department.id)
    return DepartmentOut(id=department.id, name=department.name, code=department.code)


@router.patch("/{department_id}", response_model=DepartmentOut)
def update_department(
    department_id: str,
    payload: DepartmentUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> DepartmentOut:
    department = _get_department(db, department_id)
    _ensure_unique(db, payload, exclude_id=department_id)
    department.name = payload.name
    department.code = payload.code
    log_activity(
        db,
        user=current_user,
        action="department.updated",
        entity_type="department",
        entity_id=department.id,
        details={"name": payload.name, "code": payload.code},
    )
    db.commit()
    db.refresh(department)
    return DepartmentOut(
        id=department.id,
        name=department.name,
        code=department.code,
        counts=department_counts(db, department.id),
    )


@router.delete("/{department_id}", response_model=MessageOut)
def delete_department(
    department_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> MessageOut:
    department = _get_department(db, department_id)
    counts = department_counts(db, department_id)
    if counts.teachers or counts.subjects or counts.schedules:
        raise RelatedRecordsError(
            "Cannot delete department with associated teachers, subjects or schedules",
            counts=counts.model_dump(),
        )
    log_activity(
        db,
        user=current_user,
        action="department.deleted",
        entity_type="department",
        entity_id=department.id,
        details={"code": department.code},
    )
    db.delete(department)
    db.commit()
    logger.info("Deleted department %s", department_id)
    return MessageOut(message="Department deleted successfully")
