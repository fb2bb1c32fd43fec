"""Rubric endpoints: one rubric document per grade category."""

from __future__ import annotations

import logging

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.config.settings import settings
from app.controllers.dependencies import CurrentUserDep, SessionDep
from app.models.rubric import Rubric as RubricModel
from app.pipelines.analysis import rubric_category_for_grade, store_uploads, validate_extension
from app.services.document_extractor import extract_async
from app.services.file_storage import remove_files, resolve_stored_path
from app.views import (
    RubricDeletedResponse,
    RubricListResponse,
    RubricResponse,
    RubricUploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rubrics", tags=["rubrics"])


@router.get("/", response_model=RubricListResponse)
async def list_rubrics(
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> RubricListResponse:
    result = await session.execute(select(RubricModel).order_by(RubricModel.grade))
    return RubricListResponse(
        data=[RubricResponse.model_validate(item) for item in result.scalars().all()]
    )


@router.post(
    "/",
    response_model=RubricUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_rubric(
    session: SessionDep,
    _current_user: CurrentUserDep,
    file: UploadFile | None = File(None),
    grade: str | None = Form(None),
) -> RubricUploadResponse:
    """Store a rubric for a grade category, replacing any previous one."""

    if not grade or not grade.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Grade is required"
        )
    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No rubric file uploaded"
        )

    category = rubric_category_for_grade(grade) or grade.strip()
    validate_extension(file, "rubric", settings.uploads.document_extensions)
    (stored,) = await store_uploads(
        [("rubric", file, settings.uploads.max_document_bytes)]
    )
    extraction = await extract_async(stored.path, stored.original_name)
    if not extraction.ok:
        remove_files([stored.path])
        logger.warning("Rejected rubric %s: %s", stored.original_name, extraction.text)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Could not read text from {stored.original_name}",
        )

    result = await session.execute(
        select(RubricModel).where(RubricModel.grade == category)
    )
    rubric = result.scalar_one_or_none()
    previous_path = None
    if rubric is None:
        rubric = RubricModel(grade=category)
        session.add(rubric)
    else:
        previous_path = rubric.file_path

    rubric.file_path = stored.public_url
    rubric.original_name = stored.original_name
    rubric.file_type = stored.extension.lstrip(".")
    rubric.content = extraction.text
    try:
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        remove_files([stored.path])
        raise
    # The old document is only dropped once the row points at the new one.
    if previous_path and previous_path != stored.public_url:
        remove_files([resolve_stored_path(previous_path)])
    await session.refresh(rubric)

    return RubricUploadResponse(
        message=f"Rubric for {category} uploaded successfully",
        data=RubricResponse.model_validate(rubric),
    )


@router.delete("/{rubric_id}", response_model=RubricDeletedResponse)
async def delete_rubric(
    rubric_id: int,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> RubricDeletedResponse:
    result = await session.execute(
        select(RubricModel).where(RubricModel.id == rubric_id)
    )
    rubric = result.scalar_one_or_none()
    if not rubric:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Rubric not found"
        )

    remove_files([resolve_stored_path(rubric.file_path)])
    await session.delete(rubric)
    await session.commit()
    return RubricDeletedResponse()
