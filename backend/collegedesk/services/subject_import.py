"""Bulk subject import from CSV/Excel sheets or JSON rows.

Sheet layout (first row is a header and is skipped):
    Subject Name, Subject Code, Category, Year, Semester
"""
from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Sequence
from pathlib import Path

import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from collegedesk.core.exceptions import ImportFormatError, ResourceNotFoundError
from collegedesk.models.department import Department
from collegedesk.models.subject import Subject, SubjectCategory
from collegedesk.models.user import User
from collegedesk.schemas.subject import SubjectImportError, SubjectImportResult, SubjectImportRow, SubjectOut
from collegedesk.services.audit import log_activity

logger = logging.getLogger(__name__)

SHEET_COLUMNS = ["Subject Name", "Subject Code", "Category", "Year", "Semester"]
ALLOWED_CATEGORIES = [item.value for item in SubjectCategory]
TEMPLATE_CSV = (
    "Subject Name,Subject Code,Category,Year,Semester\n"
    "Data Structures,CS201,core,2,3\n"
    "Algorithms,CS202,core,2,4\n"
)


def _read_frame(filename: str, content: bytes) -> pd.DataFrame:
    suffix = Path(filename or "").suffix.lower()
    if suffix == ".xls":
        raise ImportFormatError("Legacy .xls files are not supported. Save the sheet as .xlsx and upload again.")
    if suffix not in {".csv", ".xlsx"}:
        raise ImportFormatError(
            "Unsupported file type. Upload a .csv or .xlsx file.", details={"filename": filename}
        )
    buffer = io.BytesIO(content)
    try:
        if suffix == ".csv":
            frame = pd.read_csv(buffer, header=None, dtype=str, keep_default_na=False, skip_blank_lines=True)
        else:
            frame = pd.read_excel(buffer, header=None, dtype=str, engine="openpyxl")
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except (ValueError, zipfile.BadZipFile) as exc:
        logger.info("Rejected subject sheet %s: %s", filename, exc)
        raise ImportFormatError("Could not read the uploaded sheet", details={"filename": filename}) from exc
    return frame.fillna("")


def parse_sheet(filename: str, content: bytes) -> list[tuple[int, SubjectImportRow]]:
    """Return ``(sheet_row_number, row)`` pairs for every usable data row."""
    frame = _read_frame(filename, content)
    rows: list[tuple[int, SubjectImportRow]] = []
    for position, values in enumerate(frame.itertuples(index=False, name=None)):
        if position == 0:
            continue
        cells = [str(value).strip() for value in values]
        while cells and not cells[-1]:
            cells.pop()
        if len(cells) < len(SHEET_COLUMNS) or not cells[0]:
            continue
        name, code, category, year, semester = cells[: len(SHEET_COLUMNS)]
        rows.append(
            (
                position + 1,
                SubjectImportRow(name=name, code=code, category=category, year=year, semester=semester),
            )
        )
    return rows


def invalid_categories(rows: Sequence[tuple[int, SubjectImportRow]]) -> list[str]:
    found: list[str] = []
    for _, row in rows:
        category = row.category.strip().lower()
        if category not in ALLOWED_CATEGORIES and row.category not in found:
            found.append(row.category)
    return found


def get_department_by_code(db: Session, code: str) -> Department:
    department = db.execute(
        select(Department).where(func.upper(Department.code) == code.strip().upper())
    ).scalar_one_or_none()
    if department is None:
        raise ResourceNotFoundError("Department", code)
    return department


def _parse_semester(value: str) -> int | None:
    try:
        semester = int(str(value).strip())
    except ValueError:
        return None
    if semester < 1 or semester > 8:
        return None
    return semester


def import_subjects(
    db: Session,
    *,
    department: Department,
    rows: Sequence[tuple[int, SubjectImportRow]],
    actor: User | None,
    max_rows: int,
) -> SubjectImportResult:
    if not rows:
        raise ImportFormatError("No subject rows found", details={"columns": SHEET_COLUMNS})
    if len(rows) > max_rows:
        raise ImportFormatError(
            f"Too many rows: {len(rows)} (limit {max_rows})", details={"rows": len(rows), "limit": max_rows}
        )
    bad_categories = invalid_categories(rows)
    if bad_categories:
        raise ImportFormatError(
            "Invalid categories found",
            details={"invalidCategories": bad_categories, "allowed": ALLOWED_CATEGORIES},
        )

    errors: list[SubjectImportError] = []
    created: list[Subject] = []
    for row_number, row in rows:
        code = row.code.strip().upper()
        name = row.name.strip()
        if not code:
            errors.append(SubjectImportError(row=row_number, code=code, error="Subject code is required"))
            continue
        semester = _parse_semester(row.semester)
        if semester is None:
            errors.append(
                SubjectImportError(row=row_number, code=code, error="Semester must be a number between 1 and 8")
            )
            continue
        if db.execute(select(Subject.id).where(Subject.code == code)).first() is not None:
            errors.append(SubjectImportError(row=row_number, code=code, error="Subject code already exists"))
            continue

        subject = Subject(
            name=name,
            code=code,
            category=SubjectCategory(row.category.strip().lower()),
            semester=semester,
            department_id=department.id,
        )
        savepoint = db.begin_nested()
        try:
            db.add(subject)
            db.flush()
        except IntegrityError:
            savepoint.rollback()
            errors.append(SubjectImportError(row=row_number, code=code, error="Subject code already exists"))
            continue
        savepoint.commit()
        created.append(subject)

    if created:
        log_activity(
            db,
            user=actor,
            action="subject.imported",
            entity_type="department",
            entity_id=department.id,
            details={"created": len(created), "failed": len(errors)},
        )
    db.commit()
    logger.info(
        "Imported %d subject(s) into %s, %d row(s) failed", len(created), department.code, len(errors)
    )

    subjects: list[SubjectOut] = []
    for subject in created:
        db.refresh(subject)
        out = SubjectOut.model_validate(subject)
        out.department_name = department.name
        subjects.append(out)
    return SubjectImportResult(created=len(created), failed=len(errors), errors=errors, subjects=subjects)
