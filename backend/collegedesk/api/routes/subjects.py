import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from collegedesk.api.deps import get_db, require_roles
from collegedesk.core.config import get_settings
from collegedesk.core.exceptions import DuplicateResourceError, RelatedRecordsError, ResourceNotFoundError
from collegedesk.models.department import Department
from collegedesk.models.faculty import TeacherSubject
from collegedesk.models.schedule import Schedule
from collegedesk.models.subject import Subject
from collegedesk.models.user import User, UserRole
from collegedesk.schemas.common import MessageOut
from collegedesk.schemas.subject import (
    SubjectBulkCreate,
    SubjectCreate,
    SubjectImportResult,
    SubjectOut,
    SubjectUpdate,
)
from collegedesk.services.audit import log_activity
from collegedesk.services.subject_import import TEMPLATE_CSV, get_department_by_code, import_subjects, parse_sheet

settings = get_settings()
router = APIRouter()
logger = logging.getLogger(__name__)


def _serialize(db: Session, subjects: list[Subject]) -> list[SubjectOut]:
    department_ids = {item.department_id for item in subjects}
    names = (
        dict(db.execute(select(Department.id, Department.name).where(Department.id.in_(department_ids))).all())
        if department_ids
        else {}
    )
    serialized = []
    for item in subjects:
        out = SubjectOut.model_validate(item)
        out.department_name = names.get(item.department_id)
        serialized.append(out)
    return serialized


def _get_subject(db: Session, subject_id: str) -> Subject:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise ResourceNotFoundError("Subject", subject_id)
    return subject


def _ensure_code_free(db: Session, code: str, exclude_id: str | None = None) -> None:
    query = select(Subject.id).where(Subject.code == code)
    if exclude_id:
        query = query.where(Subject.id != exclude_id)
    if db.execute(query).first() is not None:
        raise DuplicateResourceError("Subject code already exists", field="code")


@router.get("/", response_model=list[SubjectOut])
def list_subjects(
    department_id: str | None = Query(default=None, alias="departmentId"),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    db: Session = Depends(get_db),
) -> list[SubjectOut]:
    query = select(Subject).order_by(Subject.name)
    if department_id:
        query = query.where(Subject.department_id == department_id)
    return _serialize(db, list(db.execute(query).scalars()))


@router.get("/import/template")
def download_import_template(current_user: User = Depends(require_roles(UserRole.admin))) -> Response:
    return Response(
        content=TEMPLATE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="subjects_template.csv"'},
    )


@router.post("/bulk", response_model=SubjectImportResult)
def bulk_create_subjects(
    payload: SubjectBulkCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> SubjectImportResult:
    department = get_department_by_code(db, payload.department_code)
    rows = list(enumerate(payload.subjects, start=1))
    return import_subjects(
        db, department=department, rows=rows, actor=current_user, max_rows=settings.max_import_rows
    )


@router.post("/import", response_model=SubjectImportResult)
async def import_subject_sheet(
    department_code: str = Query(alias="departmentCode", min_length=1),
    file: UploadFile = File(...),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> SubjectImportResult:
    department = get_department_by_code(db, department_code)
    content = await file.read()
    rows = parse_sheet(file.filename or "", content)
    logger.info("Parsed %d subject row(s) from %s", len(rows), file.filename)
    return import_subjects(
        db, department=department, rows=rows, actor=current_user, max_rows=settings.max_import_rows
    )


@router.get("/{subject_id}", response_model=SubjectOut)
def get_subject(
    subject_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    db: Session = Depends(get_db),
) -> SubjectOut:
    return _serialize(db, [_get_subject(db, subject_id)])[0]


@router.post("/", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> SubjectOut:
    if db.get(Department, payload.department_id) is None:
        raise ResourceNotFoundError("Department", payload.department_id)
    _ensure_code_free(db, payload.code)
    subject = Subject(**payload.model_dump())
    db.add(subject)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="subject.created",
        entity_type="subject",
        entity_id=subject.id,
        details={"code": subject.code},
    )
    db.commit()
    db.refresh(subject)
    logger.info("Created subject %s", subject.code)
    return _serialize(db, [subject])[0]


@router.patch("/{subject_id}", response_model=SubjectOut)
def update_subject(
    subject_id: str,
    payload: SubjectUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> SubjectOut:
    subject = _get_subject(db, subject_id)
    data = payload.model_dump(exclude_none=True)
    if "code" in data:
        _ensure_code_free(db, data["code"], exclude_id=subject_id)
    for key, value in data.items():
        setattr(subject, key, value)
    log_activity(
        db,
        user=current_user,
        action="subject.updated",
        entity_type="subject",
        entity_id=subject.id,
        details={"fields": sorted(data.keys())},
    )
    db.commit()
    db.refresh(subject)
    return _serialize(db, [subject])[0]


@router.delete("/{subject_id}", response_model=MessageOut)
def delete_subject(
    subject_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> MessageOut:
    subject = _get_subject(db, subject_id)
    schedules = db.scalar(select(func.count()).select_from(Schedule).where(Schedule.subject_id == subject_id)) or 0
    teachers = (
        db.scalar(select(func.count()).select_from(TeacherSubject).where(TeacherSubject.subject_id == subject_id))
        or 0
    )
    if schedules or teachers:
        raise RelatedRecordsError(
            "Cannot delete subject that is scheduled or assigned to teachers",
            counts={"schedules": schedules, "teachers": teachers},
        )
    code = subject.code
    log_activity(
        db,
        user=current_user,
        action="subject.deleted",
        entity_type="subject",
        entity_id=subject.id,
        details={"code": code},
    )
    db.delete(subject)
    db.commit()
    logger.info("Deleted subject %s", code)
    return MessageOut(message="Subject deleted successfully")
