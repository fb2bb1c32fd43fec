"""SQLAlchemy model for scheduled or recorded lectures."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Column, Date, DateTime
from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class LectureStatus(str, Enum):
    """Scheduling lifecycle of a lecture."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AnalysisStatus(str, Enum):
    """State of the detached AI analysis attempt for a lecture."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Lecture(Base):
    __tablename__ = "lectures"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(
        Integer,
        ForeignKey("teachers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id = Column(
        Integer,
        ForeignKey("classes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    lecture_number = Column(Integer, nullable=True)
    date = Column(Date, nullable=False)
    time_slot = Column(String(60), nullable=True)
    grade = Column(String(40), nullable=True)
    section = Column(String(20), nullable=True)
    subject = Column(String(80), nullable=True)
    video_path = Column(String(512), nullable=True)
    # Public URLs of the COB parameters, reading material and lesson plan.
    supporting_documents = Column(JSON, nullable=True)
    status = Column(
        SqlEnum(LectureStatus, name="lecture_status"),
        nullable=False,
        default=LectureStatus.SCHEDULED,
    )
    analysis_status = Column(
        SqlEnum(AnalysisStatus, name="analysis_status"),
        nullable=False,
        default=AnalysisStatus.PENDING,
    )
    analysis_error = Column(Text, nullable=True)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=datetime.utcnow,
    )

    teacher = relationship("Teacher", back_populates="lectures", lazy="joined")
    school_class = relationship("SchoolClass", back_populates="lectures", lazy="joined")
    report = relationship(
        "Report",
        back_populates="lecture",
        uselist=False,
        cascade="all, delete-orphan",
    )


__all__ = ["Lecture", "LectureStatus", "AnalysisStatus"]
