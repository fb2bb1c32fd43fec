"""Pydantic schemas for lecture scheduling and status."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field

from app.models.lecture import AnalysisStatus, LectureStatus


class LectureScheduleRequest(BaseModel):
    """Payload for scheduling a lecture slot."""

    teacher_id: int
    date: dt.date
    class_id: int | None = None
    time_slot: str | None = Field(None, max_length=60)
    lecture_number: int | None = Field(None, ge=1)
    grade: str | None = Field(None, max_length=40)
    section: str | None = Field(None, max_length=20)
    subject: str | None = Field(None, max_length=80)


class LectureResponse(BaseModel):
    id: int
    teacher_id: int
    teacher_name: str | None = None
    class_id: int | None = None
    class_name: str | None = None
    lecture_number: int | None = None
    date: dt.date
    time_slot: str | None = None
    grade: str | None = None
    section: str | None = None
    subject: str | None = None
    video_path: str | None = None
    supporting_documents: list[str | None] = []
    status: LectureStatus
    analysis_status: AnalysisStatus
    analysis_error: str | None = None
    pdf_report_url: str | None = None


__all__ = ["LectureScheduleRequest", "LectureResponse"]
