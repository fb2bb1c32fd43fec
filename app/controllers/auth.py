"""Login endpoint issuing bearer tokens for staff and teachers."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import func, select

from app.controllers.dependencies import SessionDep
from app.models.teacher import Teacher as TeacherModel
from app.models.user import User as UserModel
from app.telemetry import increment_login
from app.utils import create_access_token, token_lifetime, verify_password
from app.views import LoginRequest, SchoolResponse, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, session: SessionDep) -> TokenResponse:
    """Exchange email and password for an access token.

    Teachers also receive their ``teacherId`` so the client can scope the
    lecture list without a second lookup.
    """

    email = str(payload.email).lower()
    result = await session.execute(
        select(UserModel).where(func.lower(UserModel.email) == email)
    )
    user = result.unique().scalar_one_or_none()

    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info("Rejected login for %s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    teacher_id = await session.scalar(
        select(TeacherModel.id).where(TeacherModel.user_id == user.id)
    )
    increment_login()

    return TokenResponse(
        access_token=create_access_token(user),
        expires_in=int(token_lifetime().total_seconds()),
        role=user.role.value,
        name=user.name,
        school=SchoolResponse.model_validate(user.school) if user.school else None,
        teacher_id=teacher_id,
    )
