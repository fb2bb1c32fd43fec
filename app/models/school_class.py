"""SQLAlchemy model for a class (grade + section) inside a school."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class SchoolClass(Base):
    """A taught class such as "Class 10" section "A"."""

    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(80), nullable=False)
    section = Column(String(20), nullable=True)
    school_id = Column(
        Integer,
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    school = relationship("School", back_populates="classes", lazy="joined")
    lectures = relationship("Lecture", back_populates="school_class")


__all__ = ["SchoolClass"]
