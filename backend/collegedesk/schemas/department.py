from pydantic import Field, field_validator

from collegedesk.schemas.common import CamelModel


class DepartmentBase(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=20)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Department name is required")
        return trimmed

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        trimmed = value.strip().upper()
        if not trimmed:
            raise ValueError("Department code is required")
        return trimmed


class DepartmentCreate(DepartmentBase):
    pass


class DepartmentUpdate(DepartmentBase):
    pass


class DepartmentCounts(CamelModel):
    teachers: int = 0
    subjects: int = 0
    schedules: int = 0


class DepartmentSubjectOut(CamelModel):
    id: str
    name: str
    code: str
    category: str
    semester: int


class DepartmentOut(DepartmentBase):
    id: str
    counts: DepartmentCounts = Field(default_factory=DepartmentCounts)


class DepartmentDetailOut(DepartmentOut):
    subjects: list[DepartmentSubjectOut] = Field(default_factory=list)
