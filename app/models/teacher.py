"""SQLAlchemy model for teacher profiles attached to users."""

from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    school_id = Column(
        Integer,
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subjects = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="Active")
    experience = Column(Integer, nullable=False, default=0)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    user = relationship("User", back_populates="teacher_profile", lazy="joined")
    school = relationship("School", back_populates="teachers", lazy="joined")
    lectures = relationship(
        "Lecture",
        back_populates="teacher",
        cascade="all, delete-orphan",
    )

    @property
    def name(self) -> str | None:
        return self.user.name if self.user else None


__all__ = ["Teacher"]
