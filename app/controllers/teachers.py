"""Teacher controller: each teacher profile owns a login user."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.controllers.dependencies import CurrentUserDep, SessionDep
from app.models.school import School as SchoolModel
from app.models.teacher import Teacher as TeacherModel
from app.models.user import User as UserModel
from app.models.user import UserRole
from app.utils import hash_password
from app.views import TeacherCreateRequest, TeacherResponse, TeacherUpdateRequest

router = APIRouter(prefix="/teachers", tags=["teachers"])

DEFAULT_TEACHER_PASSWORD = "123456"


def _serialize(teacher: TeacherModel) -> TeacherResponse:
    return TeacherResponse(
        id=teacher.id,
        user_id=teacher.user_id,
        name=teacher.user.name,
        email=teacher.user.email,
        school=teacher.school.name if teacher.school else "",
        school_id=teacher.school_id,
        subjects=list(teacher.subjects or []),
        status=teacher.status,
        experience=teacher.experience,
    )


async def _get_teacher_or_404(session: AsyncSession, teacher_id: int) -> TeacherModel:
    result = await session.execute(
        select(TeacherModel)
        .where(TeacherModel.id == teacher_id)
        .execution_options(populate_existing=True)
    )
    teacher = result.unique().scalar_one_or_none()
    if not teacher:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found"
        )
    return teacher


@router.post("/", response_model=TeacherResponse, status_code=status.HTTP_201_CREATED)
async def create_teacher(
    payload: TeacherCreateRequest,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> TeacherResponse:
    email = str(payload.email).lower()
    existing = await session.execute(select(UserModel.id).where(UserModel.email == email))
    if existing.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email address already registered",
        )

    school_result = await session.execute(
        select(SchoolModel).where(SchoolModel.id == payload.school_id)
    )
    school = school_result.scalar_one_or_none()
    if not school:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="School not found"
        )

    user = UserModel(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password or DEFAULT_TEACHER_PASSWORD),
        role=UserRole.TEACHER,
        school=school,
    )
    teacher = TeacherModel(
        user=user,
        school=school,
        subjects=payload.subjects,
        experience=payload.experience,
        status="Active",
    )
    session.add_all([user, teacher])
    await session.commit()

    return _serialize(await _get_teacher_or_404(session, teacher.id))


@router.get("/", response_model=list[TeacherResponse])
async def list_teachers(
    session: SessionDep,
    _current_user: CurrentUserDep,
    school_id: int | None = None,
) -> list[TeacherResponse]:
    query = select(TeacherModel).order_by(TeacherModel.id)
    if school_id is not None:
        query = query.where(TeacherModel.school_id == school_id)
    result = await session.execute(query)
    return [_serialize(teacher) for teacher in result.unique().scalars().all()]


@router.get("/{teacher_id}", response_model=TeacherResponse)
async def get_teacher(
    teacher_id: int,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> TeacherResponse:
    return _serialize(await _get_teacher_or_404(session, teacher_id))


@router.put("/{teacher_id}", response_model=TeacherResponse)
async def update_teacher(
    teacher_id: int,
    payload: TeacherUpdateRequest,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> TeacherResponse:
    teacher = await _get_teacher_or_404(session, teacher_id)

    if payload.email is not None:
        email = str(payload.email).lower()
        duplicate = await session.execute(
            select(UserModel.id).where(
                UserModel.email == email,
                UserModel.id != teacher.user_id,
            )
        )
        if duplicate.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email address already registered",
            )
        teacher.user.email = email
    if payload.name is not None:
        teacher.user.name = payload.name.strip()
    if payload.subjects is not None:
        teacher.subjects = payload.subjects
    if payload.status is not None:
        teacher.status = payload.status
    if payload.experience is not None:
        teacher.experience = payload.experience

    await session.commit()
    return _serialize(await _get_teacher_or_404(session, teacher_id))


@router.delete("/{teacher_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_teacher(
    teacher_id: int,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> Response:
    teacher = await _get_teacher_or_404(session, teacher_id)

    # The profile goes with its user through the delete-orphan cascade.
    await session.delete(teacher.user)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
