"""Annotated dependencies shared by every router."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User as UserModel
from app.services.gemini_client import GeminiClient
from app.utils import AuthenticationError, decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
SessionDep = Annotated[AsyncSession, Depends(get_session)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: SessionDep,
) -> UserModel:
    """Load the account named by the bearer token's ``sub`` claim.

    Accounts deleted after the token was issued are rejected even though the
    signature is still valid.
    """

    try:
        user_id = int(decode_access_token(token).sub)
    except (AuthenticationError, ValueError):
        raise _unauthorized("Could not validate credentials") from None

    user = await session.scalar(select(UserModel).where(UserModel.id == user_id))
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_gemini_client(request: Request) -> GeminiClient:
    """Return the Gemini client created at startup, or a fresh one."""

    client = getattr(request.app.state, "gemini_client", None)
    if client is None:
        client = GeminiClient()
        request.app.state.gemini_client = client
    return client


CurrentUserDep = Annotated[UserModel, Depends(get_current_user)]
GeminiClientDep = Annotated[GeminiClient, Depends(get_gemini_client)]


__all__ = [
    "get_current_user",
    "get_gemini_client",
    "oauth2_scheme",
    "SessionDep",
    "CurrentUserDep",
    "GeminiClientDep",
]
