"""Lecture scheduling and status endpoints."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.controllers.dependencies import CurrentUserDep, SessionDep
from app.models.lecture import Lecture as LectureModel
from app.models.lecture import LectureStatus
from app.models.report import Report as ReportModel
from app.models.school_class import SchoolClass as SchoolClassModel
from app.models.teacher import Teacher as TeacherModel
from app.services.file_storage import report_pdf_path, report_pdf_url
from app.views import LectureResponse, LectureScheduleRequest

router = APIRouter(prefix="/lectures", tags=["lectures"])


def pdf_url_for(lecture_id: int, has_report: bool) -> str | None:
    """Static PDF link when rendered, else the on-demand download route."""

    if not has_report:
        return None
    if report_pdf_path(lecture_id).exists():
        return report_pdf_url(lecture_id)
    return f"/analysis/{lecture_id}/download"


def serialize_lecture(lecture: LectureModel, has_report: bool = False) -> LectureResponse:
    school_class = lecture.school_class
    class_name = None
    if school_class is not None:
        class_name = " ".join(
            part for part in (school_class.name, school_class.section) if part
        )
    return LectureResponse(
        id=lecture.id,
        teacher_id=lecture.teacher_id,
        teacher_name=lecture.teacher.name if lecture.teacher else None,
        class_id=lecture.class_id,
        class_name=class_name,
        lecture_number=lecture.lecture_number,
        date=lecture.date,
        time_slot=lecture.time_slot,
        grade=lecture.grade,
        section=lecture.section,
        subject=lecture.subject,
        video_path=lecture.video_path,
        supporting_documents=list(lecture.supporting_documents or []),
        status=lecture.status,
        analysis_status=lecture.analysis_status,
        analysis_error=lecture.analysis_error,
        pdf_report_url=pdf_url_for(lecture.id, has_report),
    )


async def get_lecture_or_404(session: AsyncSession, lecture_id: int) -> LectureModel:
    result = await session.execute(
        select(LectureModel)
        .where(LectureModel.id == lecture_id)
        .execution_options(populate_existing=True)
    )
    lecture = result.unique().scalar_one_or_none()
    if not lecture:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Lecture not found"
        )
    return lecture


async def get_teacher_or_404(session: AsyncSession, teacher_id: int) -> TeacherModel:
    result = await session.execute(
        select(TeacherModel).where(TeacherModel.id == teacher_id)
    )
    teacher = result.unique().scalar_one_or_none()
    if not teacher:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found"
        )
    return teacher


async def get_class_or_404(session: AsyncSession, class_id: int) -> SchoolClassModel:
    result = await session.execute(
        select(SchoolClassModel).where(SchoolClassModel.id == class_id)
    )
    school_class = result.unique().scalar_one_or_none()
    if not school_class:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Class not found"
        )
    return school_class


async def has_report(session: AsyncSession, lecture_id: int) -> bool:
    result = await session.execute(
        select(ReportModel.id).where(ReportModel.lecture_id == lecture_id)
    )
    return result.first() is not None


@router.post("/", response_model=LectureResponse, status_code=status.HTTP_201_CREATED)
async def schedule_lecture(
    payload: LectureScheduleRequest,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> LectureResponse:
    await get_teacher_or_404(session, payload.teacher_id)
    if payload.class_id is not None:
        await get_class_or_404(session, payload.class_id)

    if payload.time_slot:
        conflict = await session.execute(
            select(LectureModel.id).where(
                LectureModel.teacher_id == payload.teacher_id,
                LectureModel.date == payload.date,
                LectureModel.time_slot == payload.time_slot,
                LectureModel.status == LectureStatus.SCHEDULED,
            )
        )
        if conflict.first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Teacher already has a lecture scheduled in this time slot",
            )

    lecture = LectureModel(
        teacher_id=payload.teacher_id,
        class_id=payload.class_id,
        date=payload.date,
        time_slot=payload.time_slot,
        lecture_number=payload.lecture_number,
        grade=payload.grade,
        section=payload.section,
        subject=payload.subject,
        status=LectureStatus.SCHEDULED,
    )
    session.add(lecture)
    await session.commit()

    return serialize_lecture(await get_lecture_or_404(session, lecture.id))


@router.get("/", response_model=list[LectureResponse])
async def list_lectures(
    session: SessionDep,
    _current_user: CurrentUserDep,
    teacher_id: int | None = None,
    class_id: int | None = None,
    date: dt.date | None = None,
) -> list[LectureResponse]:
    query = select(LectureModel).order_by(LectureModel.id.desc())
    if teacher_id is not None:
        query = query.where(LectureModel.teacher_id == teacher_id)
    if class_id is not None:
        query = query.where(LectureModel.class_id == class_id)
    if date is not None:
        query = query.where(LectureModel.date == date)

    result = await session.execute(query)
    lectures = result.unique().scalars().all()
    if not lectures:
        return []

    reported = await session.execute(
        select(ReportModel.lecture_id).where(
            ReportModel.lecture_id.in_([lecture.id for lecture in lectures])
        )
    )
    with_reports = set(reported.scalars().all())
    return [serialize_lecture(lecture, lecture.id in with_reports) for lecture in lectures]


@router.get("/{lecture_id}", response_model=LectureResponse)
async def get_lecture(
    lecture_id: int,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> LectureResponse:
    lecture = await get_lecture_or_404(session, lecture_id)
    return serialize_lecture(lecture, await has_report(session, lecture_id))
