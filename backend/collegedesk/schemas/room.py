from pydantic import Field, field_validator

from collegedesk.models.room import RoomType
from collegedesk.models.schedule import UNASSIGNED_ROOM
from collegedesk.schemas.common import CamelModel


def _room_name(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("Room name is required")
    # Schedules use this label for "no room yet".
    if trimmed.upper() == UNASSIGNED_ROOM:
        raise ValueError(f"{UNASSIGNED_ROOM} is reserved for unassigned classes")
    return trimmed


class RoomCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    type: RoomType
    capacity: int = Field(ge=0, le=5000)
    building: str | None = Field(default=None, max_length=200)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return _room_name(value)


class RoomUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    type: RoomType | None = None
    capacity: int | None = Field(default=None, ge=0, le=5000)
    building: str | None = Field(default=None, max_length=200)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str | None) -> str | None:
        return _room_name(value)


class RoomOut(CamelModel):
    id: str
    name: str
    type: RoomType
    capacity: int
    building: str | None = None
