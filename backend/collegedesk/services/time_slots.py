from sqlalchemy import select
from sqlalchemy.orm import Session

from collegedesk.models.time_slot import TimeSlotConfig
from collegedesk.schemas.time_slot import TimeSlotOut

# Served when nothing is configured yet so the grid still has rows.
DEFAULT_TIME_SLOTS: list[dict] = [
    {"slot_id": "slot-1", "start_time": "09:00", "end_time": "10:00", "label": "Period 1", "is_break": False},
    {"slot_id": "slot-2", "start_time": "10:00", "end_time": "11:00", "label": "Period 2", "is_break": False},
    {"slot_id": "slot-3", "start_time": "11:00", "end_time": "12:00", "label": "Period 3", "is_break": False},
    {"slot_id": "break-1", "start_time": "12:00", "end_time": "12:30", "label": "Lunch Break", "is_break": True},
    {"slot_id": "slot-4", "start_time": "12:30", "end_time": "13:30", "label": "Period 4", "is_break": False},
    {"slot_id": "slot-5", "start_time": "13:30", "end_time": "14:30", "label": "Period 5", "is_break": False},
    {"slot_id": "slot-6", "start_time": "14:30", "end_time": "15:30", "label": "Period 6", "is_break": False},
]


def default_time_slots() -> list[TimeSlotOut]:
    return [
        TimeSlotOut(id=item["slot_id"], order=index, is_active=True, **item)
        for index, item in enumerate(DEFAULT_TIME_SLOTS, start=1)
    ]


def list_active_time_slots(db: Session) -> list[TimeSlotOut]:
    rows = db.execute(
        select(TimeSlotConfig)
        .where(TimeSlotConfig.is_active.is_(True))
        .order_by(TimeSlotConfig.order, TimeSlotConfig.start_time)
    ).scalars()
    slots = [TimeSlotOut.model_validate(row) for row in rows]
    return slots or default_time_slots()
