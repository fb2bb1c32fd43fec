"""Password hashing and JWT helpers for staff accounts."""

from __future__ import annotations

import base64
import hashlib
import hmac
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from app.config.settings import settings
from app.models.user import User

_SCHEME = "pbkdf2_sha256"
_SALT_BYTES = 16


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_password(password: str) -> str:
    """Hash ``password`` as ``pbkdf2_sha256$<iterations>$<salt>$<digest>``.

    The iteration count travels with the hash so it can be raised through
    ``PASSWORD_HASH_ITERATIONS`` without invalidating existing accounts.
    """

    iterations = settings.security.password_hash_iterations
    salt = os.urandom(_SALT_BYTES)
    digest = _derive(password, salt, iterations)
    return f"{_SCHEME}${iterations}${_b64(salt)}${_b64(digest)}"


def verify_password(password: str, hashed: str) -> bool:
    try:
        scheme, iterations, salt, digest = hashed.split("$")
        if scheme != _SCHEME:
            return False
        expected = base64.b64decode(digest)
        candidate = _derive(password, base64.b64decode(salt), int(iterations))
    except (ValueError, TypeError):
        return False
    return hmac.compare_digest(candidate, expected)


class AuthenticationError(Exception):
    """Raised when a bearer token is missing, expired or tampered with."""


class TokenPayload(BaseModel):
    """Claims carried by an access token."""

    sub: str
    exp: datetime
    iat: datetime | None = None
    name: str | None = None
    role: str | None = None
    school_id: int | None = None


def token_lifetime() -> timedelta:
    return timedelta(minutes=settings.security.access_token_expires_minutes)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Sign an access token identifying ``user`` by id, role and school."""

    issued_at = datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "sub": str(user.id),
        "iat": issued_at,
        "exp": issued_at + (expires_delta or token_lifetime()),
        "name": user.name,
        "role": user.role.value if user.role else None,
        "school_id": user.school_id,
    }
    return jwt.encode(
        claims,
        settings.security.jwt_secret_key.get_secret_value(),
        algorithm=settings.security.jwt_algorithm,
    )


def decode_access_token(token: str) -> TokenPayload:
    try:
        claims = jwt.decode(
            token,
            settings.security.jwt_secret_key.get_secret_value(),
            algorithms=[settings.security.jwt_algorithm],
        )
        return TokenPayload.model_validate(claims)
    except (JWTError, ValidationError) as exc:
        raise AuthenticationError("Invalid authentication token") from exc


__all__ = [
    "AuthenticationError",
    "TokenPayload",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "token_lifetime",
    "verify_password",
]
