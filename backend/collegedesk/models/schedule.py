import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from collegedesk.core.time_model import DayOfWeek
from collegedesk.db.base import Base

UNASSIGNED_ROOM = "TBA"


class SessionType(str, Enum):
    LECTURE = "LECTURE"
    LAB = "LAB"
    TUTORIAL = "TUTORIAL"


class ScheduleStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class TimetableType(str, Enum):
    REGULAR = "REGULAR"
    EXAM = "EXAM"
    SPECIAL = "SPECIAL"


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (
        Index("ix_schedules_year_semester_day", "academic_year", "semester", "day"),
        Index(
            "ix_schedules_scope",
            "academic_year",
            "semester",
            "department_id",
            "class_section",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    department_id: Mapped[str] = mapped_column(String(36), nullable=False)
    class_section: Mapped[str] = mapped_column(String(10), nullable=False)
    day: Mapped[DayOfWeek] = mapped_column(SAEnum(DayOfWeek, name="day_of_week"), nullable=False)
    time_slot_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    # Free-text room identifier, not a key into the rooms table.
    room_id: Mapped[str] = mapped_column(String(100), nullable=False, default=UNASSIGNED_ROOM)
    session_type: Mapped[SessionType] = mapped_column(
        SAEnum(SessionType, name="session_type"), nullable=False, default=SessionType.LECTURE
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    repeat_weekly: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    effective_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    effective_till: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status"), nullable=False, default=ScheduleStatus.DRAFT
    )
    timetable_type: Mapped[TimetableType] = mapped_column(
        SAEnum(TimetableType, name="timetable_type"), nullable=False, default=TimetableType.REGULAR
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
