"""Pydantic schemas for teacher profiles."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class TeacherCreateRequest(BaseModel):
    """Creates the login user and the teacher profile in one call."""

    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str | None = Field(None, min_length=6, max_length=128)
    school_id: int
    subjects: list[str] = Field(default_factory=list)
    experience: int = Field(0, ge=0)


class TeacherUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    email: EmailStr | None = None
    subjects: list[str] | None = None
    status: str | None = Field(None, max_length=20)
    experience: int | None = Field(None, ge=0)


class TeacherResponse(BaseModel):
    """Flattened teacher view joining the user and school."""

    id: int
    user_id: int
    name: str
    email: str
    school: str
    school_id: int
    subjects: list[str]
    status: str
    experience: int


__all__ = ["TeacherCreateRequest", "TeacherUpdateRequest", "TeacherResponse"]
