"""Per-request console logging with an optional database audit trail."""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional

from cryptography.fernet import Fernet
from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.config.settings import settings
from app.middleware.telemetry import resolve_route
from app.utils import AuthenticationError, TokenPayload, decode_access_token

logger = logging.getLogger("app.middleware.structured")

_RESET = "\u001b[0m"
_STATUS_COLOURS = (
    (500, "\u001b[31m"),  # red
    (400, "\u001b[33m"),  # yellow
    (300, "\u001b[36m"),  # cyan
    (200, "\u001b[32m"),  # green
)


@dataclass(slots=True)
class SessionContext:
    """Who made the request, as far as the bearer token tells us."""

    user_id: str
    role: str | None
    started_at: datetime
    expires_at: datetime
    fingerprint: str
    sealed: str


def _naive_utc(value: Optional[datetime]) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _bearer_token(request: Request) -> Optional[str]:
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Print one colour-coded line per request and optionally store it.

    Rows go to ``request_logs`` only when ``PERSIST_REQUEST_LOGS`` is on. The
    raw token is never stored: session details are sealed with a Fernet key
    derived from the JWT secret.
    """

    _cipher: ClassVar[Optional[Fernet]] = None

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        started = time.perf_counter()
        user_agent = request.headers.get("user-agent")
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc),
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else None,
            "user_agent": user_agent[:256] if user_agent else None,
        }
        session = self._session_for(request, entry)

        try:
            response = await call_next(request)
        except Exception as exc:
            self._finish(entry, request, 500, started)
            entry["error"] = repr(exc)
            logger.exception(self._console_line(entry, session))
            raise

        self._finish(entry, request, response.status_code, started)
        logger.info(self._console_line(entry, session))
        # Trailing-slash redirects would double every row.
        if settings.persist_request_logs and response.status_code != 307:
            await self._persist(entry, session)
        return response

    @staticmethod
    def _finish(entry: dict[str, Any], request: Request, status: int, started: float) -> None:
        entry["status_code"] = status
        entry["route"] = resolve_route(request)
        entry["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)

    def _session_for(self, request: Request, entry: dict[str, Any]) -> SessionContext | None:
        token = _bearer_token(request)
        if token is None:
            return None
        try:
            claims = decode_access_token(token)
        except AuthenticationError:
            logger.debug("Ignoring undecodable bearer token for %s", entry["url"])
            return None
        return self._seal(claims, entry)

    @classmethod
    def _seal(cls, claims: TokenPayload, entry: dict[str, Any]) -> SessionContext:
        started_at = (claims.iat or entry["timestamp"]).astimezone(timezone.utc)
        expires_at = claims.exp.astimezone(timezone.utc)
        fingerprint = hashlib.sha256(
            f"{claims.sub}:{int(started_at.timestamp())}".encode("utf-8")
        ).hexdigest()

        details = {
            "session": fingerprint,
            "user_id": claims.sub,
            "role": claims.role,
            "school_id": claims.school_id,
            "started_at": started_at.isoformat(),
            "expires_at": expires_at.isoformat(),
            "client_ip": entry["client_ip"],
            "user_agent": entry["user_agent"],
        }
        sealed = cls._fernet().encrypt(
            json.dumps(details, separators=(",", ":")).encode("utf-8")
        )
        return SessionContext(
            user_id=claims.sub,
            role=claims.role,
            started_at=started_at,
            expires_at=expires_at,
            fingerprint=fingerprint,
            sealed=sealed.decode("utf-8"),
        )

    @classmethod
    def _fernet(cls) -> Fernet:
        if cls._cipher is None:
            secret = settings.security.jwt_secret_key.get_secret_value().encode("utf-8")
            cls._cipher = Fernet(base64.urlsafe_b64encode(hashlib.sha256(secret).digest()))
        return cls._cipher

    async def _persist(self, entry: dict[str, Any], session: SessionContext | None) -> None:
        # The database module imports every model, so defer it to first use.
        from app.database import session_scope
        from app.models.log import RequestLog

        row = RequestLog(
            timestamp=_naive_utc(entry["timestamp"]),
            method=entry["method"],
            route=entry["route"],
            url=entry["url"],
            status_code=entry["status_code"],
            duration_ms=int(entry["duration_ms"]),
            client_ip=entry["client_ip"],
            user_agent=entry["user_agent"],
        )
        if session is not None:
            row.session_user_id = session.user_id
            row.session_role = session.role
            row.session_fingerprint = session.fingerprint
            row.session_id = session.sealed
            row.session_started_at = _naive_utc(session.started_at)
            row.session_expires_at = _naive_utc(session.expires_at)

        async with session_scope() as db:
            db.add(row)
            try:
                await db.commit()
            except SQLAlchemyError:
                await db.rollback()
                logger.exception("Failed to persist request log for %s", entry["url"])

    @staticmethod
    def _console_line(entry: dict[str, Any], session: SessionContext | None) -> str:
        status = entry["status_code"]
        colour = next((code for floor, code in _STATUS_COLOURS if status >= floor), _RESET)
        fields = (
            ("timestamp", entry["timestamp"].isoformat()),
            ("method", entry["method"]),
            ("route", entry["route"]),
            ("status", status),
            ("duration_ms", entry["duration_ms"]),
            ("client_ip", entry["client_ip"]),
            ("user_id", session.user_id if session else None),
            ("role", session.role if session else None),
        )
        line = ", ".join(f"{name}={'-' if value is None else value}" for name, value in fields)
        return f"{colour}{line}{_RESET}"


__all__ = ["SessionContext", "StructuredLoggingMiddleware"]
