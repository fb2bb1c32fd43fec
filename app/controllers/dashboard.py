"""Dashboard aggregate endpoints."""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import func, select

from app.controllers.dependencies import CurrentUserDep, SessionDep
from app.models.lecture import AnalysisStatus, Lecture
from app.models.report import Report
from app.models.school import School
from app.models.teacher import Teacher
from app.models.user import User
from app.views import DashboardStatsResponse

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> DashboardStatsResponse:
    async def _count(model, *criteria) -> int:
        query = select(func.count()).select_from(model)
        if criteria:
            query = query.where(*criteria)
        return int((await session.execute(query)).scalar_one())

    return DashboardStatsResponse(
        schools=await _count(School),
        teachers=await _count(Teacher),
        users=await _count(User),
        lectures=await _count(Lecture),
        reports=await _count(Report),
        analyses_processing=await _count(
            Lecture, Lecture.analysis_status == AnalysisStatus.PROCESSING
        ),
        analyses_failed=await _count(
            Lecture, Lecture.analysis_status == AnalysisStatus.FAILED
        ),
    )
