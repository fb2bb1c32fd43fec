"""SQLAlchemy models for the MVC architecture."""

from .base import Base
from .lecture import AnalysisStatus, Lecture, LectureStatus  # noqa: F401
from .log import RequestLog  # noqa: F401
from .report import Report  # noqa: F401
from .rubric import Rubric  # noqa: F401
from .school import School  # noqa: F401
from .school_class import SchoolClass  # noqa: F401
from .teacher import Teacher  # noqa: F401
from .user import User, UserRole  # noqa: F401

__all__ = [
    "Base",
    "User",
    "UserRole",
    "School",
    "SchoolClass",
    "Teacher",
    "Lecture",
    "LectureStatus",
    "AnalysisStatus",
    "Report",
    "Rubric",
    "RequestLog",
]
