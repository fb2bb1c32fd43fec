"""Authentication helpers shared by controllers and middleware."""

from .security import (
    AuthenticationError,
    TokenPayload,
    create_access_token,
    decode_access_token,
    hash_password,
    token_lifetime,
    verify_password,
)

__all__ = [
    "AuthenticationError",
    "TokenPayload",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "token_lifetime",
    "verify_password",
]
