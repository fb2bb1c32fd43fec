"""SQLAlchemy model representing educational institutions."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class School(Base):
    __tablename__ = "schools"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False, unique=True, index=True)
    address = Column(Text, nullable=True)
    contact_number = Column(String(40), nullable=True)
    email = Column(String(255), nullable=True, unique=True, index=True)
    principal = Column(String(120), nullable=True)
    teacher_count = Column(Integer, nullable=True)
    student_count = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="Active")
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    users = relationship("User", back_populates="school")
    teachers = relationship(
        "Teacher",
        back_populates="school",
        cascade="all, delete-orphan",
    )
    classes = relationship(
        "SchoolClass",
        back_populates="school",
        cascade="all, delete-orphan",
    )


__all__ = ["School"]
