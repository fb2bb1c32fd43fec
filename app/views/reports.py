"""Pydantic schemas for analysis reports and uploads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from app.views.lectures import LectureResponse


class UploadAcceptedResponse(BaseModel):
    """Returned with HTTP 202 while the analysis runs in the background."""

    message: str
    file: str
    lecture: LectureResponse
    status: str = "processing"
    lecture_id: int


class AnalysisAcceptedResponse(BaseModel):
    message: str
    lecture_id: int
    status: str = "processing"


class ReportResponse(BaseModel):
    id: int
    lecture_id: int
    analysis_data: dict[str, Any]
    rubric_scores: dict[str, Any] | None = None
    generated_by_ai: bool
    created_at: datetime
    updated_at: datetime
    pdf_report_url: str


class DocumentAnalysisResponse(BaseModel):
    success: bool = True
    analysis_type: str
    source_type: str
    model: str | None = None
    data: dict[str, Any]


__all__ = [
    "AnalysisAcceptedResponse",
    "DocumentAnalysisResponse",
    "ReportResponse",
    "UploadAcceptedResponse",
]
