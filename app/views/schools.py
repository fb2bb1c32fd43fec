"""Pydantic schemas for School and Class resources."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SchoolCreateRequest(BaseModel):
    """Payload for creating a new School."""

    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    address: str | None = None
    contact_number: str | None = Field(None, max_length=40)
    principal: str | None = Field(None, max_length=120)
    teacher_count: int | None = Field(None, ge=0)
    student_count: int | None = Field(None, ge=0)


class SchoolUpdateRequest(BaseModel):
    """Payload for updating an existing School."""

    name: str | None = Field(None, min_length=1, max_length=120)
    email: EmailStr | None = None
    address: str | None = None
    contact_number: str | None = Field(None, max_length=40)
    principal: str | None = Field(None, max_length=120)
    teacher_count: int | None = Field(None, ge=0)
    student_count: int | None = Field(None, ge=0)
    status: str | None = Field(None, max_length=20)


class SchoolResponse(BaseModel):
    """Serialized representation of a School."""

    id: int
    name: str
    email: str | None = None
    address: str | None = None
    contact_number: str | None = None
    principal: str | None = None
    teacher_count: int | None = None
    student_count: int | None = None
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClassCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    section: str | None = Field(None, max_length=20)


class ClassResponse(BaseModel):
    id: int
    name: str
    section: str | None = None
    school_id: int

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "ClassCreateRequest",
    "ClassResponse",
    "SchoolCreateRequest",
    "SchoolResponse",
    "SchoolUpdateRequest",
]
