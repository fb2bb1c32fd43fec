"""Lecture video upload endpoint that kicks off the background analysis."""

from __future__ import annotations

import datetime as dt
import logging

from fastapi import APIRouter, BackgroundTasks, File, Form, HTTPException, UploadFile, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.controllers.dependencies import CurrentUserDep, GeminiClientDep, SessionDep
from app.controllers.lectures import (
    get_class_or_404,
    get_lecture_or_404,
    get_teacher_or_404,
    serialize_lecture,
)
from app.models.lecture import AnalysisStatus, LectureStatus
from app.models.lecture import Lecture as LectureModel
from app.pipelines.analysis import LectureUploads, ingest_lecture_uploads, run_lecture_analysis
from app.services.file_storage import remove_files, resolve_stored_path
from app.views import UploadAcceptedResponse

logger = logging.getLogger("app.services.analysis_pipeline")

router = APIRouter(tags=["uploads"])


async def _resolve_lecture(
    session: AsyncSession,
    *,
    lecture_id: int | None,
    teacher_id: int | None,
    lecture_date: dt.date | None,
    lecture_number: int | None,
) -> LectureModel:
    if lecture_id is not None:
        return await get_lecture_or_404(session, lecture_id)

    if teacher_id is None or lecture_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either lecture_id or teacher_id and date are required",
        )
    await get_teacher_or_404(session, teacher_id)

    if lecture_number is not None:
        result = await session.execute(
            select(LectureModel).where(
                LectureModel.teacher_id == teacher_id,
                LectureModel.date == lecture_date,
                LectureModel.lecture_number == lecture_number,
            )
        )
        existing = result.unique().scalars().first()
        if existing is not None:
            return existing

    lecture = LectureModel(
        teacher_id=teacher_id,
        date=lecture_date,
        lecture_number=lecture_number,
        status=LectureStatus.SCHEDULED,
    )
    session.add(lecture)
    return lecture


async def _attach_video(
    session: AsyncSession,
    uploads: LectureUploads,
    *,
    lecture_id: int | None,
    teacher_id: int | None,
    lecture_date: dt.date | None,
    lecture_number: int | None,
    class_id: int | None,
    grade: str | None,
    section: str | None,
    subject: str | None,
) -> LectureModel:
    lecture = await _resolve_lecture(
        session,
        lecture_id=lecture_id,
        teacher_id=teacher_id,
        lecture_date=lecture_date,
        lecture_number=lecture_number,
    )
    if class_id is not None:
        await get_class_or_404(session, class_id)
        lecture.class_id = class_id
    if grade:
        lecture.grade = grade
    if section:
        lecture.section = section
    if subject:
        lecture.subject = subject

    replaced = [ref for ref in lecture.supporting_documents or [] if ref]
    lecture.video_path = uploads.video.public_url
    lecture.supporting_documents = uploads.supporting_references()
    lecture.status = LectureStatus.COMPLETED
    lecture.analysis_status = AnalysisStatus.PROCESSING
    lecture.analysis_error = None
    await session.commit()
    remove_files(resolve_stored_path(ref) for ref in replaced)
    return await get_lecture_or_404(session, lecture.id)


@router.post(
    "/upload",
    response_model=UploadAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def upload_lecture_video(
    background_tasks: BackgroundTasks,
    session: SessionDep,
    client: GeminiClientDep,
    _current_user: CurrentUserDep,
    video: UploadFile | None = File(None),
    cob_params: UploadFile | None = File(None, alias="cobParams"),
    reading_material: UploadFile | None = File(None, alias="readingMaterial"),
    lesson_plan: UploadFile | None = File(None, alias="lessonPlan"),
    lecture_id: int | None = Form(None),
    teacher_id: int | None = Form(None),
    date: dt.date | None = Form(None),
    lecture_number: int | None = Form(None),
    class_id: int | None = Form(None),
    grade: str | None = Form(None),
    section: str | None = Form(None),
    subject: str | None = Form(None),
) -> UploadAcceptedResponse:
    """Store the lecture files and analyse them in the background.

    Clients poll ``GET /lectures/{id}`` for ``analysis_status`` and the
    report link.
    """

    uploads = await ingest_lecture_uploads(video, cob_params, reading_material, lesson_plan)

    try:
        lecture = await _attach_video(
            session,
            uploads,
            lecture_id=lecture_id,
            teacher_id=teacher_id,
            lecture_date=date,
            lecture_number=lecture_number,
            class_id=class_id,
            grade=grade,
            section=section,
            subject=subject,
        )
    except HTTPException:
        await session.rollback()
        remove_files(item.path for item in uploads.all_files())
        raise

    logger.info("Queued analysis for lecture %s (%s)", lecture.id, uploads.video.path.name)
    background_tasks.add_task(run_lecture_analysis, lecture.id, client)

    return UploadAcceptedResponse(
        message="Video uploaded successfully. Analysis started.",
        file=uploads.video.public_url,
        lecture=serialize_lecture(lecture),
        status="processing",
        lecture_id=lecture.id,
    )
