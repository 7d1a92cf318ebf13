from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import Field, field_validator, model_validator

from collegedesk.core.exceptions import ScopeValidationError
from collegedesk.core.time_model import DayOfWeek, normalize_time, parse_time_to_minutes
from collegedesk.models.schedule import UNASSIGNED_ROOM, ScheduleStatus, SessionType, TimetableType
from collegedesk.schemas.common import CamelModel

ConflictType = Literal["TEACHER", "ROOM", "CLASS"]


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class ScheduleScope(CamelModel):
    academic_year: str = Field(min_length=1, max_length=20)
    semester: int = Field(ge=1, le=8)
    department_id: str = Field(min_length=1, max_length=36)
    class_section: str = Field(min_length=1, max_length=10)
    timetable_type: TimetableType | None = None


class ScheduleScopeIn(CamelModel):
    """Loose scope payload; ``require`` turns gaps into 400 field errors."""

    academic_year: str | None = None
    semester: int | str | None = None
    department_id: str | None = None
    class_section: str | None = None
    timetable_type: TimetableType | None = None

    def require(self) -> ScheduleScope:
        for field, alias in (
            ("academic_year", "academicYear"),
            ("semester", "semester"),
            ("department_id", "departmentId"),
            ("class_section", "classSection"),
        ):
            value = getattr(self, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ScopeValidationError(f"Missing required field: {alias}", field=alias)
        try:
            semester = int(self.semester)
        except (TypeError, ValueError) as exc:
            raise ScopeValidationError("Invalid semester value", field="semester") from exc
        if semester < 1 or semester > 8:
            raise ScopeValidationError("Semester must be between 1 and 8", field="semester")
        return ScheduleScope(
            academic_year=self.academic_year.strip(),
            semester=semester,
            department_id=self.department_id.strip(),
            class_section=self.class_section.strip(),
            timetable_type=self.timetable_type,
        )


class ScheduleFields(CamelModel):
    day: DayOfWeek
    time_slot_id: str | None = Field(default=None, max_length=50)
    start_time: str
    end_time: str
    subject_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    room_id: str | None = Field(default=None, max_length=100)
    session_type: SessionType = SessionType.LECTURE
    duration: int = Field(default=1, ge=1, le=12)
    is_mandatory: bool = True
    notes: str | None = Field(default=None, max_length=2000)
    repeat_weekly: bool = True
    effective_from: date | None = None
    effective_till: date | None = None
    status: ScheduleStatus = ScheduleStatus.DRAFT

    @field_validator("day", mode="before")
    @classmethod
    def normalize_day(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)

    @field_validator("time_slot_id")
    @classmethod
    def normalize_time_slot_id(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @field_validator("room_id")
    @classmethod
    def normalize_room_id(cls, value: str | None) -> str:
        return _blank_to_none(value) or UNASSIGNED_ROOM

    @model_validator(mode="after")
    def validate_ranges(self) -> "ScheduleFields":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("endTime must be after startTime")
        if self.effective_from and self.effective_till and self.effective_till < self.effective_from:
            raise ValueError("effectiveTill must not be before effectiveFrom")
        return self


class ScheduleCreate(ScheduleFields):
    academic_year: str = Field(min_length=1, max_length=20)
    semester: int = Field(ge=1, le=8)
    department_id: str = Field(min_length=1, max_length=36)
    class_section: str = Field(min_length=1, max_length=10)
    timetable_type: TimetableType = TimetableType.REGULAR

    @field_validator("academic_year", "class_section")
    @classmethod
    def strip_scope_text(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Value cannot be empty")
        return trimmed


class ScheduleUpdate(ScheduleFields):
    """Full replacement of the mutable fields. Scope fields are fixed at creation."""


class ScheduleOut(ScheduleCreate):
    id: str
    subject_name: str | None = None
    subject_code: str | None = None
    teacher_name: str | None = None
    teacher_faculty_id: str | None = None
    room_name: str | None = None
    department_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ConflictCheckRequest(CamelModel):
    schedule_id: str | None = None
    academic_year: str = Field(min_length=1, max_length=20)
    semester: int = Field(ge=1, le=8)
    department_id: str = Field(min_length=1, max_length=36)
    class_section: str = Field(min_length=1, max_length=10)
    day: DayOfWeek
    time_slot_id: str | None = None
    start_time: str
    end_time: str
    teacher_id: str | None = None
    room_id: str | None = None

    @field_validator("day", mode="before")
    @classmethod
    def normalize_day(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)

    @field_validator("schedule_id", "teacher_id", "room_id", "time_slot_id")
    @classmethod
    def normalize_optional_ids(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def validate_times(self) -> "ConflictCheckRequest":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("endTime must be after startTime")
        return self


class ConflictOut(CamelModel):
    type: ConflictType
    message: str
    conflicting_slot: ScheduleOut | None = None


class ConflictCheckResponse(CamelModel):
    conflicts: list[ConflictOut] = Field(default_factory=list)


class ScheduleCopyRequest(CamelModel):
    day: DayOfWeek
    start_time: str
    end_time: str
    time_slot_id: str | None = None

    @field_validator("day", mode="before")
    @classmethod
    def normalize_day(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)

    @field_validator("time_slot_id")
    @classmethod
    def normalize_time_slot_id(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def validate_times(self) -> "ScheduleCopyRequest":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("endTime must be after startTime")
        return self


class ScheduleCopyResult(CamelModel):
    copied: bool
    schedule: ScheduleOut | None = None
