from __future__ import annotations

from datetime import datetime, timezone
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from collegedesk.db.bootstrap import missing_schema_items
from collegedesk.db.session import engine
from collegedesk.models.time_slot import TimeSlotConfig

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    db_ok = True
    missing: dict[str, list[str]] = {}
    db_error: str | None = None
    active_slots = 0

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            missing = missing_schema_items(connection)
            if "time_slot_configs" not in missing:
                active_slots = connection.execute(
                    select(func.count()).select_from(TimeSlotConfig).where(TimeSlotConfig.is_active.is_(True))
                ).scalar_one()
    except SQLAlchemyError as exc:  # pragma: no cover - environment dependent
        logger.warning("Readiness probe could not reach the database: %s", exc)
        db_ok = False
        db_error = str(exc)

    schema_ok = not missing
    ready = db_ok and schema_ok
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {
            "ok": db_ok,
            "schema_ok": schema_ok,
            "missing": missing,
            "error": db_error,
        },
        # The grid falls back to the built-in day when no slot is active.
        "time_slots": {"active": active_slots, "using_defaults": active_slots == 0},
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
