"""Pydantic schemas used as views in the MVC architecture."""

from .auth import LoginRequest, TokenResponse
from .dashboard import DashboardStatsResponse
from .lectures import LectureResponse, LectureScheduleRequest
from .reports import (
    AnalysisAcceptedResponse,
    DocumentAnalysisResponse,
    ReportResponse,
    UploadAcceptedResponse,
)
from .rubrics import (
    RubricDeletedResponse,
    RubricListResponse,
    RubricResponse,
    RubricUploadResponse,
)
from .schools import (
    ClassCreateRequest,
    ClassResponse,
    SchoolCreateRequest,
    SchoolResponse,
    SchoolUpdateRequest,
)
from .teachers import TeacherCreateRequest, TeacherResponse, TeacherUpdateRequest
from .users import UserCreateRequest, UserResponse, UserUpdateRequest

__all__ = [
    "AnalysisAcceptedResponse",
    "ClassCreateRequest",
    "ClassResponse",
    "DashboardStatsResponse",
    "DocumentAnalysisResponse",
    "LectureResponse",
    "LectureScheduleRequest",
    "LoginRequest",
    "ReportResponse",
    "RubricDeletedResponse",
    "RubricListResponse",
    "RubricResponse",
    "RubricUploadResponse",
    "SchoolCreateRequest",
    "SchoolResponse",
    "SchoolUpdateRequest",
    "TeacherCreateRequest",
    "TeacherResponse",
    "TeacherUpdateRequest",
    "TokenResponse",
    "UploadAcceptedResponse",
    "UserCreateRequest",
    "UserResponse",
    "UserUpdateRequest",
]
