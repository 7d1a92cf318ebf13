from collegedesk.models.activity_log import ActivityLog  # noqa: F401
from collegedesk.models.department import Department  # noqa: F401
from collegedesk.models.faculty import Teacher, TeacherSubject  # noqa: F401
from collegedesk.models.room import Room, RoomType  # noqa: F401
from collegedesk.models.schedule import (  # noqa: F401
    Schedule,
    ScheduleStatus,
    SessionType,
    TimetableType,
)
from collegedesk.models.subject import Subject, SubjectCategory  # noqa: F401
from collegedesk.models.time_slot import TimeSlotConfig  # noqa: F401
from collegedesk.models.user import User, UserRole  # noqa: F401
