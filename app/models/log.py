"""Request audit trail, written by the structured logging middleware."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from app.models.base import Base


class RequestLog(Base):
    """One row per request while ``PERSIST_REQUEST_LOGS`` is enabled.

    ``route`` holds the matched template (``/lectures/{lecture_id}``) so rows
    group per endpoint; ``url`` keeps the concrete path and query. The
    ``session_*`` columns are filled only for bearer-authenticated calls,
    with ``session_id`` being a Fernet-encrypted blob rather than the token.
    """

    __tablename__ = "request_logs"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    method = Column(String(10), nullable=False)
    route = Column(String(255), nullable=True, index=True)
    url = Column(String(2048), nullable=False)
    status_code = Column(Integer, nullable=False)
    duration_ms = Column(Integer, nullable=True)
    client_ip = Column(String(64), nullable=True)
    user_agent = Column(String(256), nullable=True)

    session_user_id = Column(String(128), nullable=True, index=True)
    session_role = Column(String(40), nullable=True, index=True)
    session_fingerprint = Column(String(64), nullable=True, index=True)
    session_id = Column(String(512), nullable=True)
    session_started_at = Column(DateTime, nullable=True)
    session_expires_at = Column(DateTime, nullable=True)


__all__ = ["RequestLog"]
