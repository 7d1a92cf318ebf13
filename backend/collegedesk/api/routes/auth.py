from datetime import datetime, timedelta, timezone
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from collegedesk.api.deps import get_current_user, get_db
from collegedesk.core.config import get_settings
from collegedesk.core.security import create_access_token, get_password_hash, verify_password
from collegedesk.models.user import User
from collegedesk.schemas.user import Token, UserCreate, UserLogin, UserOut
from collegedesk.services.audit import log_activity

settings = get_settings()
router = APIRouter()
logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email already registered"


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)) -> UserOut:
    if find_user_by_email(db, payload.email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_TAKEN)

    user = User(
        name=payload.name,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
    )
    db.add(user)
    try:
        db.flush()
        log_activity(
            db,
            user=user,
            action="auth.registered",
            entity_type="user",
            entity_id=user.id,
            details={"role": user.role.value},
        )
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email.
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_TAKEN) from exc

    db.refresh(user)
    logger.info("Registered %s user %s", user.role.value, user.id)
    return user


def authenticate(db: Session, payload: UserLogin) -> User:
    user = find_user_by_email(db, payload.email)
    if user is None or not user.hashed_password or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    if payload.role is not None and payload.role != user.role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Role does not match user account")
    return user


@router.post("/login", response_model=Token)
def login(payload: UserLogin, db: Session = Depends(get_db)) -> Token:
    user = authenticate(db, payload)
    user.last_login_at = datetime.now(timezone.utc)
    log_activity(db, user=user, action="auth.login", entity_type="user", entity_id=user.id)
    db.commit()
    db.refresh(user)

    access_token = create_access_token(user.id, expires_delta=timedelta(minutes=settings.access_token_expire_minutes))
    return Token(access_token=access_token, user=UserOut.model_validate(user))


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> UserOut:
    return current_user


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    # Tokens are stateless; the client discards its copy.
    log_activity(db, user=current_user, action="auth.logout", entity_type="user", entity_id=current_user.id)
    db.commit()
    return {"success": True}
