"""Activity trail helpers.

``log_activity`` only stages the row; whichever commit persists the change
persists its audit entry too, so a rolled-back change leaves no trace.
"""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from collegedesk.models.activity_log import ActivityLog
from collegedesk.models.user import User
from collegedesk.schemas.activity import ActivityLogOut


def log_activity(
    db: Session,
    *,
    user: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> None:
    db.add(
        ActivityLog(
            user_id=user.id if user is not None else None,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details or {},
        )
    )


def list_activity(db: Session, *, entity_type: str | None = None, limit: int = 100) -> list[ActivityLogOut]:
    """Newest first, with the acting user's display name joined in."""
    statement = select(ActivityLog)
    if entity_type:
        statement = statement.where(ActivityLog.entity_type == entity_type)
    rows = list(db.execute(statement.order_by(ActivityLog.created_at.desc()).limit(limit)).scalars())

    user_ids = {row.user_id for row in rows if row.user_id}
    names = dict(db.execute(select(User.id, User.name).where(User.id.in_(user_ids))).all()) if user_ids else {}
    entries = []
    for row in rows:
        entry = ActivityLogOut.model_validate(row)
        entry.user_name = names.get(row.user_id)
        entries.append(entry)
    return entries
