from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from collegedesk.models.user import UserRole
from collegedesk.schemas.common import CamelModel


def _clean_email(value: str) -> str:
    return value.strip().lower()


class UserCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    role: UserRole

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _clean_email(value)


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    role: UserRole | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _clean_email(value)


class UserOut(CamelModel):
    id: str
    name: str
    email: str
    role: UserRole
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime | None = None


class Token(BaseModel):
    # OAuth-style field names, left in snake_case on the wire.
    access_token: str
    token_type: str = "bearer"
    user: UserOut
