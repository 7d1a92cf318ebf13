from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from collegedesk.api.deps import get_db, require_roles
from collegedesk.models.user import User, UserRole
from collegedesk.schemas.activity import ActivityLogOut
from collegedesk.services.audit import list_activity

router = APIRouter()


@router.get("/", response_model=list[ActivityLogOut])
def list_activity_logs(
    entity_type: str | None = Query(default=None, alias="entityType"),
    limit: int = Query(default=200, ge=1, le=500),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[ActivityLogOut]:
    return list_activity(db, entity_type=entity_type, limit=limit)
