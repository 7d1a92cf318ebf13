from pydantic import Field, field_validator

from collegedesk.models.subject import SubjectCategory
from collegedesk.schemas.common import CamelModel


class SubjectBase(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=50)
    category: SubjectCategory = SubjectCategory.core
    semester: int = Field(ge=1, le=8)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Subject name is required")
        return trimmed

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        trimmed = value.strip().upper()
        if not trimmed:
            raise ValueError("Subject code is required")
        return trimmed

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class SubjectCreate(SubjectBase):
    department_id: str = Field(min_length=1, max_length=36)


class SubjectUpdate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    code: str | None = Field(default=None, min_length=1, max_length=50)
    category: SubjectCategory | None = None
    semester: int | None = Field(default=None, ge=1, le=8)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Subject name is required")
        return trimmed

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().upper() or None

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        if isinstance(value, str):
            return value.strip().lower() or None
        return value


class SubjectOut(SubjectBase):
    id: str
    department_id: str
    department_name: str | None = None


class SubjectImportRow(CamelModel):
    name: str
    code: str
    category: str
    year: str = ""
    semester: str

    @field_validator("name", "code", "category", "year", "semester", mode="before")
    @classmethod
    def stringify_cell(cls, value):
        # Spreadsheet cells and JSON rows may carry numbers.
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value


class SubjectBulkCreate(CamelModel):
    department_code: str = Field(min_length=1, max_length=20)
    subjects: list[SubjectImportRow] = Field(min_length=1)


class SubjectImportError(CamelModel):
    row: int
    code: str
    error: str


class SubjectImportResult(CamelModel):
    created: int
    failed: int
    errors: list[SubjectImportError] = Field(default_factory=list)
    subjects: list[SubjectOut] = Field(default_factory=list)
