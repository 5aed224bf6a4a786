from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .validators import required_text, strip_invisible_edges


def _normalize_email(value):
    if isinstance(value, str):
        return strip_invisible_edges(value).lower()
    return value


class RoleResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    name: str = Field(..., max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return required_text(value, "name")

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value)


class UserUpdate(BaseModel):
    """Partial update: only supplied fields change, supplied fields may not be null."""

    name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return required_text(value, "name")

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        if value is None:
            raise ValueError("The email field is required.")
        return _normalize_email(value)

    @field_validator("password", mode="before")
    @classmethod
    def require_password(cls, value):
        if value is None:
            raise ValueError("The password field is required.")
        return value


class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}


class UserResponse(UserSummary):
    """User representation; the password hash is never included."""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    roles: List[RoleResponse] = []


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value)


class LoginResponse(BaseModel):
    user: UserSummary
    token: str
    token_type: str = "bearer"
