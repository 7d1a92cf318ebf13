import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from collegedesk.api.deps import get_db, require_roles
from collegedesk.core.exceptions import DuplicateResourceError, RelatedRecordsError, ResourceNotFoundError
from collegedesk.models.department import Department
from collegedesk.models.faculty import Teacher, TeacherSubject
from collegedesk.models.schedule import Schedule
from collegedesk.models.subject import Subject
from collegedesk.models.user import User, UserRole
from collegedesk.schemas.common import MessageOut
from collegedesk.schemas.faculty import FacultyCreate, FacultyOut, FacultySubjectOut, FacultyUpdate
from collegedesk.services.audit import log_activity

router = APIRouter()
logger = logging.getLogger(__name__)


def _serialize(db: Session, teachers: list[Teacher]) -> list[FacultyOut]:
    if not teachers:
        return []
    teacher_ids = [item.id for item in teachers]
    users = {
        item.id: item
        for item in db.execute(select(User).where(User.id.in_({t.user_id for t in teachers}))).scalars()
    }
    departments = dict(
        db.execute(
            select(Department.id, Department.name).where(Department.id.in_({t.department_id for t in teachers}))
        ).all()
    )
    links = db.execute(
        select(TeacherSubject.teacher_id, Subject)
        .join(Subject, Subject.id == TeacherSubject.subject_id)
        .where(TeacherSubject.teacher_id.in_(teacher_ids))
        .order_by(Subject.name)
    ).all()
    subjects: dict[str, list[FacultySubjectOut]] = {}
    for teacher_id, subject in links:
        subjects.setdefault(teacher_id, []).append(
            FacultySubjectOut(id=subject.id, name=subject.name, code=subject.code)
        )

    serialized = []
    for teacher in teachers:
        user = users.get(teacher.user_id)
        serialized.append(
            FacultyOut(
                id=teacher.id,
                faculty_id=teacher.faculty_id,
                name=teacher.name,
                phone=teacher.phone,
                email=user.email if user else "",
                is_active=user.is_active if user else False,
                department_id=teacher.department_id,
                department_name=departments.get(teacher.department_id),
                designations=list(teacher.designations or []),
                subjects=subjects.get(teacher.id, []),
            )
        )
    return serialized


def _get_teacher(db: Session, teacher_id: str) -> Teacher:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise ResourceNotFoundError("Teacher", teacher_id)
    return teacher


def _ensure_department(db: Session, department_id: str) -> None:
    if db.get(Department, department_id) is None:
        raise ResourceNotFoundError("Department", department_id)


def _ensure_faculty_id_free(db: Session, faculty_id: str, exclude_id: str | None = None) -> None:
    query = select(Teacher.id).where(Teacher.faculty_id == faculty_id)
    if exclude_id:
        query = query.where(Teacher.id != exclude_id)
    if db.execute(query).first() is not None:
        raise DuplicateResourceError("Faculty ID already exists", field="facultyId")


def _replace_subjects(db: Session, teacher_id: str, subject_ids: list[str]) -> None:
    unique_ids = list(dict.fromkeys(subject_ids))
    if unique_ids:
        found = set(db.execute(select(Subject.id).where(Subject.id.in_(unique_ids))).scalars())
        missing = [item for item in unique_ids if item not in found]
        if missing:
            raise ResourceNotFoundError("Subject", missing[0])
    db.execute(delete(TeacherSubject).where(TeacherSubject.teacher_id == teacher_id))
    for subject_id in unique_ids:
        db.add(TeacherSubject(teacher_id=teacher_id, subject_id=subject_id))


@router.get("/", response_model=list[FacultyOut])
def list_faculties(
    department_id: str | None = Query(default=None, alias="departmentId"),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    db: Session = Depends(get_db),
) -> list[FacultyOut]:
    query = select(Teacher).order_by(Teacher.name)
    if department_id:
        query = query.where(Teacher.department_id == department_id)
    return _serialize(db, list(db.execute(query).scalars()))


@router.get("/by-faculty-id/{faculty_id}", response_model=FacultyOut)
def get_faculty_by_code(
    faculty_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    db: Session = Depends(get_db),
) -> FacultyOut:
    teacher = db.execute(select(Teacher).where(Teacher.faculty_id == faculty_id.strip())).scalar_one_or_none()
    if teacher is None:
        raise ResourceNotFoundError("Teacher", faculty_id)
    return _serialize(db, [teacher])[0]


@router.get("/{teacher_id}", response_model=FacultyOut)
def get_faculty(
    teacher_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    db: Session = Depends(get_db),
) -> FacultyOut:
    return _serialize(db, [_get_teacher(db, teacher_id)])[0]


@router.post("/", response_model=FacultyOut, status_code=status.HTTP_201_CREATED)
def create_faculty(
    payload: FacultyCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> FacultyOut:
    _ensure_department(db, payload.department_id)
    if db.execute(select(User.id).where(User.email == payload.email)).first() is not None:
        raise DuplicateResourceError("Email already registered", field="email")
    _ensure_faculty_id_free(db, payload.faculty_id)

    user = User(name=payload.name, email=payload.email, role=UserRole.teacher, hashed_password=None)
    db.add(user)
    db.flush()
    teacher = Teacher(
        user_id=user.id,
        faculty_id=payload.faculty_id,
        name=payload.name,
        phone=payload.phone,
        department_id=payload.department_id,
        designations=payload.designations,
    )
    db.add(teacher)
    db.flush()
    _replace_subjects(db, teacher.id, payload.subject_ids)
    log_activity(
        db,
        user=current_user,
        action="faculty.created",
        entity_type="teacher",
        entity_id=teacher.id,
        details={"facultyId": teacher.faculty_id, "subjects": len(payload.subject_ids)},
    )
    db.commit()
    db.refresh(teacher)
    logger.info("Created faculty %s (%s)", teacher.faculty_id, teacher.id)
    return _serialize(db, [teacher])[0]


@router.put("/{teacher_id}", response_model=FacultyOut)
def update_faculty(
    teacher_id: str,
    payload: FacultyUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> FacultyOut:
    teacher = _get_teacher(db, teacher_id)
    _ensure_department(db, payload.department_id)
    if payload.faculty_id is not None and payload.faculty_id != teacher.faculty_id:
        _ensure_faculty_id_free(db, payload.faculty_id, exclude_id=teacher_id)
        teacher.faculty_id = payload.faculty_id

    teacher.name = payload.name
    teacher.phone = payload.phone
    teacher.department_id = payload.department_id
    if payload.designations is not None:
        teacher.designations = payload.designations
    user = db.get(User, teacher.user_id)
    if user is not None:
        user.name = payload.name
    if payload.subject_ids is not None:
        _replace_subjects(db, teacher.id, payload.subject_ids)

    log_activity(
        db,
        user=current_user,
        action="faculty.updated",
        entity_type="teacher",
        entity_id=teacher.id,
        details={"subjectsReplaced": payload.subject_ids is not None},
    )
    db.commit()
    db.refresh(teacher)
    return _serialize(db, [teacher])[0]


@router.delete("/{teacher_id}", response_model=MessageOut)
def delete_faculty(
    teacher_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> MessageOut:
    teacher = _get_teacher(db, teacher_id)
    schedules = db.scalar(select(func.count()).select_from(Schedule).where(Schedule.teacher_id == teacher_id)) or 0
    if schedules:
        raise RelatedRecordsError("Cannot delete a teacher who still has scheduled classes", counts={"schedules": schedules})

    faculty_code = teacher.faculty_id
    db.execute(delete(TeacherSubject).where(TeacherSubject.teacher_id == teacher_id))
    user = db.get(User, teacher.user_id)
    log_activity(
        db,
        user=current_user,
        action="faculty.deleted",
        entity_type="teacher",
        entity_id=teacher.id,
        details={"facultyId": faculty_code},
    )
    db.delete(teacher)
    if user is not None:
        db.delete(user)
    db.commit()
    logger.info("Deleted faculty %s", faculty_code)
    return MessageOut(message="Teacher deleted successfully")
