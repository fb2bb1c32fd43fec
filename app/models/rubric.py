"""SQLAlchemy model for grading rubrics uploaded per grade category."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from app.models.base import Base


class Rubric(Base):
    __tablename__ = "rubrics"

    id = Column(Integer, primary_key=True, index=True)
    grade = Column(String(60), nullable=False, unique=True, index=True)
    file_path = Column(String(512), nullable=False)
    original_name = Column(String(255), nullable=False)
    file_type = Column(String(10), nullable=False)
    content = Column(Text, nullable=True)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )


__all__ = ["Rubric"]
