"""Staff account management: super admins, school admins and teachers."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.controllers.dependencies import CurrentUserDep, SessionDep
from app.models.school import School as SchoolModel
from app.models.user import User as UserModel
from app.models.user import UserRole
from app.utils import hash_password
from app.views import UserCreateRequest, UserResponse, UserUpdateRequest

router = APIRouter(prefix="/users", tags=["users"])


async def _school(session: AsyncSession, school_id: int | None) -> SchoolModel | None:
    if school_id is None:
        return None
    school = await session.get(SchoolModel, school_id)
    if school is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")
    return school


async def _user(session: AsyncSession, user_id: int) -> UserModel:
    user = await session.scalar(select(UserModel).where(UserModel.id == user_id))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def _claim_email(
    session: AsyncSession,
    raw_email: str,
    owner_id: int | None = None,
) -> str:
    """Return the normalised address, or 409 when another account holds it."""

    email = raw_email.strip().lower()
    query = select(UserModel.id).where(func.lower(UserModel.email) == email)
    if owner_id is not None:
        query = query.where(UserModel.id != owner_id)
    if await session.scalar(query) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email address already registered",
        )
    return email


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> UserResponse:
    user = UserModel(
        name=payload.name.strip(),
        email=await _claim_email(session, str(payload.email)),
        password_hash=hash_password(payload.password),
        role=payload.role,
        school=await _school(session, payload.school_id),
    )
    session.add(user)
    await session.commit()
    return UserResponse.model_validate(await _user(session, user.id))


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(current_user: CurrentUserDep) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.get("/", response_model=list[UserResponse])
async def list_users(
    session: SessionDep,
    _current_user: CurrentUserDep,
    role: UserRole | None = None,
    school_id: int | None = None,
) -> list[UserResponse]:
    """Users ordered by id, optionally narrowed to one role or school."""

    query = select(UserModel).order_by(UserModel.id)
    if role is not None:
        query = query.where(UserModel.role == role)
    if school_id is not None:
        query = query.where(UserModel.school_id == school_id)

    result = await session.execute(query)
    return [UserResponse.model_validate(user) for user in result.unique().scalars()]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> UserResponse:
    return UserResponse.model_validate(await _user(session, user_id))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> UserResponse:
    user = await _user(session, user_id)

    if payload.email is not None:
        user.email = await _claim_email(session, str(payload.email), owner_id=user_id)
    if payload.name is not None:
        user.name = payload.name.strip()
    if payload.role is not None:
        user.role = payload.role
    if payload.password is not None:
        user.password_hash = hash_password(payload.password)
    # An explicit null detaches the user from their school.
    if "school_id" in payload.model_fields_set:
        user.school = await _school(session, payload.school_id)

    await session.commit()
    result = await session.execute(
        select(UserModel)
        .where(UserModel.id == user_id)
        .execution_options(populate_existing=True)
    )
    return UserResponse.model_validate(result.unique().scalar_one())


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    session: SessionDep,
    current_user: CurrentUserDep,
) -> Response:
    """Delete an account; a teacher's profile and lectures go with it."""

    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )
    user = await _user(session, user_id)
    await session.delete(user)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
