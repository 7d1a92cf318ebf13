from datetime import datetime

from pydantic import Field

from collegedesk.schemas.common import CamelModel


class ActivityLogOut(CamelModel):
    id: str
    user_id: str | None = None
    user_name: str | None = None
    action: str
    entity_type: str | None = None
    entity_id: str | None = None
    details: dict = Field(default_factory=dict)
    created_at: datetime | None = None
