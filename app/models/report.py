"""SQLAlchemy model for persisted COB analysis reports."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class Report(Base):
    """One analysis report per lecture; re-runs update the row in place."""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    lecture_id = Column(
        Integer,
        ForeignKey("lectures.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    analysis_data = Column(Text, nullable=True)
    rubric_scores = Column(JSON, nullable=True)
    generated_by_ai = Column(Boolean, nullable=False, default=False)
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

    lecture = relationship("Lecture", back_populates="report")


__all__ = ["Report"]
