import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from collegedesk.db.base import Base


class SubjectCategory(str, Enum):
    core = "core"
    elective = "elective"
    practical = "practical"
    project = "project"
    lab = "lab"


class Subject(Base):
    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    category: Mapped[SubjectCategory] = mapped_column(
        SAEnum(SubjectCategory, name="subject_category"), nullable=False, default=SubjectCategory.core
    )
    semester: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    department_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
