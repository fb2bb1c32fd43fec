"""Persistence helpers: lecture lookups, rubric resolution and report upserts."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Mapping

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.lecture import Lecture
from app.models.report import Report
from app.models.rubric import Rubric
from app.services.document_extractor import is_placeholder

from .prompts import rubric_category_for_grade
from .types import AnalysisOutcome, LectureMetadata, TranscriptResult

logger = logging.getLogger("app.services.analysis_pipeline")

_UPSERT_INSERTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}


async def load_lecture(session: AsyncSession, lecture_id: int) -> Lecture | None:
    result = await session.execute(select(Lecture).where(Lecture.id == lecture_id))
    return result.unique().scalar_one_or_none()


async def load_report(session: AsyncSession, lecture_id: int) -> Report | None:
    result = await session.execute(select(Report).where(Report.lecture_id == lecture_id))
    return result.scalar_one_or_none()


def lecture_metadata(lecture: Lecture) -> LectureMetadata:
    """Resolve header facts from the lecture's teacher and class.

    The teacher's school wins over the class's school; the lecture's own
    grade/section win over the class name/section.
    """

    teacher = lecture.teacher
    school_class = lecture.school_class

    facilitator = None
    school = None
    if teacher is not None:
        facilitator = teacher.user.name if teacher.user is not None else None
        school = teacher.school.name if teacher.school is not None else None
    if not school and school_class is not None and school_class.school is not None:
        school = school_class.school.name

    grade = lecture.grade or (school_class.name if school_class is not None else None)
    section = lecture.section or (school_class.section if school_class is not None else None)
    lecture_date = lecture.date.isoformat() if lecture.date else date.today().isoformat()

    return LectureMetadata(
        facilitator=facilitator or "Unknown Teacher",
        school=school or "Unknown School",
        grade=grade or "N/A",
        section=section or "N/A",
        subject=lecture.subject or "General",
        date=lecture_date,
    )


async def load_rubric_text(session: AsyncSession, grade: str | None) -> str | None:
    """Return the stored rubric content for the lecture grade's category."""

    category = rubric_category_for_grade(grade)
    if category is None:
        return None
    result = await session.execute(select(Rubric).where(Rubric.grade == category))
    rubric = result.scalar_one_or_none()
    if rubric is None or not (rubric.content or "").strip() or is_placeholder(rubric.content):
        logger.info("No stored rubric for category %s; using the default rubric", category)
        return None
    logger.info("Using rubric %s for grade %s", rubric.original_name, grade)
    return rubric.content


def build_report_document(
    *,
    lecture_id: int,
    video_path: str | None,
    outcome: AnalysisOutcome,
    transcript: TranscriptResult,
) -> dict[str, Any]:
    """Combine the validated report with run metadata into the stored document."""

    document: dict[str, Any] = {
        "meta": {
            "lecture_id": lecture_id,
            "video_path": video_path,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "model": outcome.model,
            "transcription_model": transcript.model,
            "used_mock": outcome.used_mock,
        },
    }
    document.update(outcome.report.model_dump(mode="json"))
    document["transcription"] = transcript.transcription
    document["sentiment"] = transcript.sentiment
    if outcome.used_mock:
        document["auditor_note"] = "Mock report: the analysis models were unavailable."
    else:
        document["auditor_note"] = "AI Analysis Complete. Please verify."
    return document


async def save_report(
    session: AsyncSession,
    lecture_id: int,
    document: Mapping[str, Any],
    *,
    rubric_scores: Mapping[str, Any] | None = None,
    generated_by_ai: bool = True,
) -> Report:
    """Insert or update the single report row for ``lecture_id``.

    On PostgreSQL and SQLite this is one ``INSERT .. ON CONFLICT`` statement,
    so overlapping analysis runs for the same lecture both succeed and the
    last writer wins.
    """

    values = {
        "lecture_id": lecture_id,
        "analysis_data": json.dumps(document, default=str),
        "rubric_scores": dict(rubric_scores) if rubric_scores is not None else None,
        "generated_by_ai": generated_by_ai,
    }

    insert = _UPSERT_INSERTS.get(session.get_bind().dialect.name)
    if insert is None:
        report = await load_report(session, lecture_id)
        if report is None:
            report = Report(lecture_id=lecture_id)
            session.add(report)
        for key, value in values.items():
            setattr(report, key, value)
        await session.flush()
        return report

    statement = insert(Report).values(**values)
    statement = statement.on_conflict_do_update(
        index_elements=["lecture_id"],
        set_={
            "analysis_data": statement.excluded.analysis_data,
            "rubric_scores": statement.excluded.rubric_scores,
            "generated_by_ai": statement.excluded.generated_by_ai,
            "updated_at": func.now(),
        },
    )
    await session.execute(statement)
    logger.info("Saved report for lecture %s", lecture_id)

    result = await session.execute(
        select(Report)
        .where(Report.lecture_id == lecture_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


__all__ = [
    "build_report_document",
    "lecture_metadata",
    "load_lecture",
    "load_report",
    "load_rubric_text",
    "save_report",
]
