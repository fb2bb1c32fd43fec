"""Pydantic schemas for grade rubrics."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class RubricResponse(BaseModel):
    id: int
    grade: str
    file_path: str
    original_name: str
    file_type: str
    content: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RubricListResponse(BaseModel):
    data: list[RubricResponse]


class RubricUploadResponse(BaseModel):
    message: str
    data: RubricResponse


class RubricDeletedResponse(BaseModel):
    message: str = "Rubric deleted successfully"


__all__ = [
    "RubricDeletedResponse",
    "RubricListResponse",
    "RubricResponse",
    "RubricUploadResponse",
]
