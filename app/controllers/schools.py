"""School controller offering CRUD operations for schools and their classes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.controllers.dependencies import CurrentUserDep, SessionDep
from app.models.school import School as SchoolModel
from app.models.school_class import SchoolClass as SchoolClassModel
from app.views import (
    ClassCreateRequest,
    ClassResponse,
    SchoolCreateRequest,
    SchoolResponse,
    SchoolUpdateRequest,
)

router = APIRouter(prefix="/schools", tags=["schools"])


async def _get_school_or_404(session: AsyncSession, school_id: int) -> SchoolModel:
    result = await session.execute(
        select(SchoolModel).where(SchoolModel.id == school_id)
    )
    school = result.scalar_one_or_none()
    if not school:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="School not found",
        )
    return school


@router.post("/", response_model=SchoolResponse, status_code=status.HTTP_201_CREATED)
async def create_school(
    payload: SchoolCreateRequest,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> SchoolResponse:
    name = payload.name.strip()
    email = str(payload.email).strip().lower()

    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name cannot be empty",
        )

    existing = await session.execute(
        select(SchoolModel).where(
            or_(
                func.lower(SchoolModel.name) == name.lower(),
                func.lower(SchoolModel.email) == email,
            )
        )
    )
    if existing.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="School with this name or email already exists",
        )

    school = SchoolModel(
        name=name,
        email=email,
        address=payload.address,
        contact_number=payload.contact_number,
        principal=payload.principal,
        teacher_count=payload.teacher_count,
        student_count=payload.student_count,
        status="Active",
    )
    session.add(school)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Could not create school",
        ) from exc

    await session.refresh(school)
    return SchoolResponse.model_validate(school)


@router.get("/", response_model=list[SchoolResponse])
async def list_schools(
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> list[SchoolResponse]:
    result = await session.execute(select(SchoolModel).order_by(SchoolModel.name))
    schools = result.scalars().all()
    return [SchoolResponse.model_validate(school) for school in schools]


@router.get("/{school_id}", response_model=SchoolResponse)
async def get_school(
    school_id: int,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> SchoolResponse:
    school = await _get_school_or_404(session, school_id)
    return SchoolResponse.model_validate(school)


@router.put("/{school_id}", response_model=SchoolResponse)
async def update_school(
    school_id: int,
    payload: SchoolUpdateRequest,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> SchoolResponse:
    school = await _get_school_or_404(session, school_id)

    new_name = school.name
    new_email = school.email
    if payload.name is not None:
        new_name = payload.name.strip()
        if not new_name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Name cannot be empty",
            )
    if payload.email is not None:
        new_email = str(payload.email).strip().lower()

    if payload.name is not None or payload.email is not None:
        dup_query = await session.execute(
            select(SchoolModel).where(
                SchoolModel.id != school_id,
                or_(
                    func.lower(SchoolModel.name) == new_name.lower(),
                    func.lower(SchoolModel.email) == (new_email or "").lower(),
                ),
            )
        )
        if dup_query.scalars().first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Another school already uses this name or email",
            )

    school.name = new_name
    school.email = new_email
    for field in (
        "address",
        "contact_number",
        "principal",
        "teacher_count",
        "student_count",
        "status",
    ):
        if field in payload.model_fields_set:
            setattr(school, field, getattr(payload, field))

    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="School information conflicts with existing records",
        ) from exc

    await session.refresh(school)
    return SchoolResponse.model_validate(school)


@router.delete("/{school_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_school(
    school_id: int,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> Response:
    school = await _get_school_or_404(session, school_id)

    await session.delete(school)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{school_id}/classes",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_class(
    school_id: int,
    payload: ClassCreateRequest,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> ClassResponse:
    await _get_school_or_404(session, school_id)

    name = payload.name.strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Class name cannot be empty",
        )

    school_class = SchoolClassModel(
        name=name,
        section=payload.section.strip() if payload.section else None,
        school_id=school_id,
    )
    session.add(school_class)
    await session.commit()
    await session.refresh(school_class)
    return ClassResponse.model_validate(school_class)


@router.get("/{school_id}/classes", response_model=list[ClassResponse])
async def list_classes(
    school_id: int,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> list[ClassResponse]:
    await _get_school_or_404(session, school_id)

    result = await session.execute(
        select(SchoolClassModel)
        .where(SchoolClassModel.school_id == school_id)
        .order_by(SchoolClassModel.name, SchoolClassModel.section)
    )
    return [ClassResponse.model_validate(item) for item in result.scalars().all()]
