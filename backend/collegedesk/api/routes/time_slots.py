import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from collegedesk.api.deps import get_current_user, get_db, require_roles
from collegedesk.core.exceptions import AppError, DuplicateResourceError, ResourceNotFoundError
from collegedesk.core.time_model import parse_time_to_minutes
from collegedesk.models.time_slot import TimeSlotConfig
from collegedesk.models.user import User, UserRole
from collegedesk.schemas.common import MessageOut
from collegedesk.schemas.time_slot import TimeSlotCreate, TimeSlotOut, TimeSlotUpdate
from collegedesk.services.audit import log_activity
from collegedesk.services.time_slots import list_active_time_slots

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_slot(db: Session, slot_pk: str) -> TimeSlotConfig:
    slot = db.get(TimeSlotConfig, slot_pk)
    if slot is None:
        raise ResourceNotFoundError("Time slot", slot_pk)
    return slot


@router.get("/", response_model=list[TimeSlotOut])
def list_time_slots(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TimeSlotOut]:
    return list_active_time_slots(db)


@router.post("/", response_model=TimeSlotOut, status_code=status.HTTP_201_CREATED)
def create_time_slot(
    payload: TimeSlotCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> TimeSlotOut:
    slot_id = payload.slot_id.strip()
    existing = db.execute(select(TimeSlotConfig).where(TimeSlotConfig.slot_id == slot_id)).scalar_one_or_none()
    if existing is not None:
        raise DuplicateResourceError("Time slot ID already exists", field="slotId")
    slot = TimeSlotConfig(**payload.model_dump(exclude={"slot_id"}), slot_id=slot_id, is_active=True)
    db.add(slot)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="time_slot.created",
        entity_type="time_slot",
        entity_id=slot.id,
        details={"slotId": slot_id, "startTime": slot.start_time, "endTime": slot.end_time},
    )
    db.commit()
    db.refresh(slot)
    logger.info("Created time slot %s %s-%s", slot.slot_id, slot.start_time, slot.end_time)
    return slot


@router.put("/{slot_pk}", response_model=TimeSlotOut)
def update_time_slot(
    slot_pk: str,
    payload: TimeSlotUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> TimeSlotOut:
    slot = _get_slot(db, slot_pk)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    start_time = data.get("start_time", slot.start_time)
    end_time = data.get("end_time", slot.end_time)
    if parse_time_to_minutes(end_time) <= parse_time_to_minutes(start_time):
        raise AppError("endTime must be after startTime", status_code=400, details={"field": "endTime"})
    for key, value in data.items():
        setattr(slot, key, value)
    if data:
        log_activity(
            db,
            user=current_user,
            action="time_slot.updated",
            entity_type="time_slot",
            entity_id=slot.id,
            details={"fields": sorted(data.keys())},
        )
    db.commit()
    db.refresh(slot)
    return slot


@router.delete("/{slot_pk}", response_model=MessageOut)
def delete_time_slot(
    slot_pk: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> MessageOut:
    slot = _get_slot(db, slot_pk)
    slot.is_active = False
    log_activity(
        db,
        user=current_user,
        action="time_slot.deactivated",
        entity_type="time_slot",
        entity_id=slot.id,
        details={"slotId": slot.slot_id},
    )
    db.commit()
    logger.info("Deactivated time slot %s", slot.slot_id)
    return MessageOut(message="Time slot deleted successfully")
