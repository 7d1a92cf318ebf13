from typing import Literal

from pydantic import Field

from collegedesk.core.time_model import DayOfWeek
from collegedesk.schemas.common import CamelModel
from collegedesk.schemas.schedule import ScheduleOut


class GridIntervalOut(CamelModel):
    index: int
    start_time: str
    end_time: str
    label: str
    is_break: bool = False
    time_slot_id: str | None = None


class GridCellOut(CamelModel):
    day: DayOfWeek
    interval_index: int
    state: Literal["empty", "spanned", "origin", "break"]
    row_span: int = 1
    schedule_id: str | None = None


class TimetableGridOut(CamelModel):
    mode: Literal["dynamic", "slots"] = "dynamic"
    days: list[DayOfWeek]
    intervals: list[GridIntervalOut] = Field(default_factory=list)
    cells: list[GridCellOut] = Field(default_factory=list)
    schedules: list[ScheduleOut] = Field(default_factory=list)


class ScheduleGroupOut(CamelModel):
    key: str
    label: str
    schedules: list[ScheduleOut] = Field(default_factory=list)
