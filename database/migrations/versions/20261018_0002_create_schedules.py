"""create time slot configs and schedules

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None


day_enum = sa.Enum("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", name="day_of_week")
session_type_enum = sa.Enum("LECTURE", "LAB", "TUTORIAL", name="session_type")
schedule_status_enum = sa.Enum("DRAFT", "PUBLISHED", name="schedule_status")
timetable_type_enum = sa.Enum("REGULAR", "EXAM", "SPECIAL", name="timetable_type")


def upgrade() -> None:
    op.create_table(
        "time_slot_configs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("slot_id", sa.String(length=50), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("label", sa.String(length=100), nullable=False),
        sa.Column("is_break", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_time_slot_configs_slot_id", "time_slot_configs", ["slot_id"], unique=True)

    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=False),
        sa.Column("class_section", sa.String(length=10), nullable=False),
        sa.Column("day", day_enum, nullable=False),
        sa.Column("time_slot_id", sa.String(length=50), nullable=True),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=100), nullable=False, server_default="TBA"),
        sa.Column("session_type", session_type_enum, nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_mandatory", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("repeat_weekly", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("effective_from", sa.Date(), nullable=True),
        sa.Column("effective_till", sa.Date(), nullable=True),
        sa.Column("status", schedule_status_enum, nullable=False, server_default="DRAFT"),
        sa.Column("timetable_type", timetable_type_enum, nullable=False, server_default="REGULAR"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedules_year_semester_day", "schedules", ["academic_year", "semester", "day"])
    op.create_index(
        "ix_schedules_scope",
        "schedules",
        ["academic_year", "semester", "department_id", "class_section"],
    )
    op.create_index("ix_schedules_subject_id", "schedules", ["subject_id"])
    op.create_index("ix_schedules_teacher_id", "schedules", ["teacher_id"])


def downgrade() -> None:
    op.drop_index("ix_schedules_teacher_id", table_name="schedules")
    op.drop_index("ix_schedules_subject_id", table_name="schedules")
    op.drop_index("ix_schedules_scope", table_name="schedules")
    op.drop_index("ix_schedules_year_semester_day", table_name="schedules")
    op.drop_table("schedules")
    op.drop_index("ix_time_slot_configs_slot_id", table_name="time_slot_configs")
    op.drop_table("time_slot_configs")
    bind = op.get_bind()
    for enum in (timetable_type_enum, schedule_status_enum, session_type_enum, day_enum):
        enum.drop(bind, checkfirst=True)
