"""Pydantic schemas for dashboard users."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.user import UserRole


class UserCreateRequest(BaseModel):
    """Payload for creating a user account."""

    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.TEACHER
    school_id: int | None = None


class UserUpdateRequest(BaseModel):
    """Payload for partially updating a user."""

    name: str | None = Field(None, min_length=1, max_length=120)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=6, max_length=128)
    role: UserRole | None = None
    school_id: int | None = None


class UserResponse(BaseModel):
    """Public representation of a user."""

    id: int
    name: str
    email: EmailStr
    role: UserRole
    school_id: int | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


__all__ = ["UserCreateRequest", "UserUpdateRequest", "UserResponse"]
