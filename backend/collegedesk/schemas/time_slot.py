from pydantic import Field, field_validator, model_validator

from collegedesk.core.time_model import normalize_time, parse_time_to_minutes
from collegedesk.schemas.common import CamelModel


class TimeSlotBase(CamelModel):
    start_time: str
    end_time: str
    label: str = Field(min_length=1, max_length=100)
    is_break: bool = False
    order: int = Field(ge=0, le=1000)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def validate_order_of_times(self) -> "TimeSlotBase":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("endTime must be after startTime")
        return self


class TimeSlotCreate(TimeSlotBase):
    slot_id: str = Field(min_length=1, max_length=50)


class TimeSlotUpdate(CamelModel):
    start_time: str | None = None
    end_time: str | None = None
    label: str | None = Field(default=None, min_length=1, max_length=100)
    is_break: bool | None = None
    order: int | None = Field(default=None, ge=0, le=1000)
    is_active: bool | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_time(value)


class TimeSlotOut(TimeSlotBase):
    id: str
    slot_id: str
    is_active: bool = True
