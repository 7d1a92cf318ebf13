from pydantic import EmailStr, Field, field_validator

from collegedesk.schemas.common import CamelModel


def _normalize_designations(value: list[str]) -> list[str]:
    seen: set[str] = set()
    normalized: list[str] = []
    for item in value:
        label = item.strip()
        if not label or label.lower() in seen:
            continue
        seen.add(label.lower())
        normalized.append(label)
    return normalized


class FacultyBase(CamelModel):
    faculty_id: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    phone: str | None = Field(default=None, max_length=30)
    department_id: str = Field(min_length=1, max_length=36)

    @field_validator("faculty_id", "name")
    @classmethod
    def strip_required(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Value cannot be empty")
        return trimmed

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class FacultyCreate(FacultyBase):
    email: EmailStr
    subject_ids: list[str] = Field(default_factory=list, max_length=100)
    designations: list[str] = Field(default_factory=list, max_length=20)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("designations")
    @classmethod
    def normalize_designations(cls, value: list[str]) -> list[str]:
        return _normalize_designations(value)


class FacultyUpdate(FacultyBase):
    faculty_id: str | None = Field(default=None, min_length=1, max_length=50)
    subject_ids: list[str] | None = Field(default=None, max_length=100)
    designations: list[str] | None = Field(default=None, max_length=20)

    @field_validator("designations")
    @classmethod
    def normalize_designations(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return _normalize_designations(value)


class FacultySubjectOut(CamelModel):
    id: str
    name: str
    code: str


class FacultyOut(CamelModel):
    id: str
    faculty_id: str
    name: str
    phone: str | None = None
    email: str
    is_active: bool = True
    department_id: str
    department_name: str | None = None
    designations: list[str] = Field(default_factory=list)
    subjects: list[FacultySubjectOut] = Field(default_factory=list)
