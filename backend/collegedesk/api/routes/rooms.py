import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from collegedesk.api.deps import get_current_user, get_db, require_roles
from collegedesk.core.exceptions import DuplicateResourceError, ResourceNotFoundError
from collegedesk.models.room import Room, RoomType
from collegedesk.models.user import User, UserRole
from collegedesk.schemas.room import RoomCreate, RoomOut, RoomUpdate
from collegedesk.services.audit import log_activity

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_room(db: Session, room_id: str) -> Room:
    room = db.get(Room, room_id)
    if room is None:
        raise ResourceNotFoundError("Room", room_id)
    return room


def _ensure_name_free(db: Session, name: str, exclude_id: str | None = None) -> None:
    query = select(Room.id).where(Room.name == name)
    if exclude_id:
        query = query.where(Room.id != exclude_id)
    if db.execute(query).first() is not None:
        raise DuplicateResourceError("Room name already exists", field="name")


@router.get("/", response_model=list[RoomOut])
def list_rooms(
    room_type: RoomType | None = Query(default=None, alias="type"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[RoomOut]:
    query = select(Room).order_by(Room.type, Room.name)
    if room_type is not None:
        query = query.where(Room.type == room_type)
    return list(db.execute(query).scalars())


@router.get("/{room_id}", response_model=RoomOut)
def get_room(
    room_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RoomOut:
    return _get_room(db, room_id)


@router.post("/", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> RoomOut:
    _ensure_name_free(db, payload.name)
    room = Room(**payload.model_dump())
    db.add(room)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="room.created",
        entity_type="room",
        entity_id=room.id,
        details={"name": room.name, "type": room.type.value, "capacity": room.capacity},
    )
    db.commit()
    db.refresh(room)
    logger.info("Created room %s (%s, %d seats)", room.name, room.type.value, room.capacity)
    return room


@router.put("/{room_id}", response_model=RoomOut)
def update_room(
    room_id: str,
    payload: RoomUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> RoomOut:
    room = _get_room(db, room_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("name") is not None:
        _ensure_name_free(db, data["name"], exclude_id=room_id)

    for key, value in data.items():
        setattr(room, key, value)
    if data:
        log_activity(
            db,
            user=current_user,
            action="room.updated",
            entity_type="room",
            entity_id=room.id,
            details={"fields": sorted(data.keys())},
        )
    db.commit()
    db.refresh(room)
    return room


@router.delete("/{room_id}")
def delete_room(
    room_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    # Schedules keep their raw room label, so nothing else changes here.
    room = _get_room(db, room_id)
    name = room.name
    log_activity(
        db, user=current_user, action="room.deleted", entity_type="room", entity_id=room.id, details={"name": name}
    )
    db.delete(room)
    db.commit()
    logger.info("Deleted room %s", name)
    return {"success": True}
