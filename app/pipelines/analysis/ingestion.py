"""Request ingestion helpers: validate uploads, then stream them to disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import HTTPException, UploadFile, status

from app.config.settings import settings
from app.services.file_storage import (
    FileTooLargeError,
    StorageError,
    StoredFile,
    file_extension,
    remove_files,
    save_upload,
)

logger = logging.getLogger("app.services.analysis_pipeline")

SUPPORTING_FIELDS = ("cobParams", "readingMaterial", "lessonPlan")


@dataclass(frozen=True)
class LectureUploads:
    video: StoredFile
    cob_params: Optional[StoredFile] = None
    reading_material: Optional[StoredFile] = None
    lesson_plan: Optional[StoredFile] = None

    def supporting_references(self) -> list[str | None]:
        """Public URLs of the COB parameters, reading material and lesson plan."""

        return [
            stored.public_url if stored is not None else None
            for stored in (self.cob_params, self.reading_material, self.lesson_plan)
        ]

    def all_files(self) -> list[StoredFile]:
        return [
            stored
            for stored in (self.video, self.cob_params, self.reading_material, self.lesson_plan)
            if stored is not None
        ]


def _allowed(extensions: Iterable[str]) -> str:
    return ", ".join(ext.lstrip(".") for ext in extensions)


def validate_extension(upload: UploadFile, field: str, allowed: list[str]) -> str:
    """Reject uploads whose extension is not in ``allowed`` with HTTP 400."""

    extension = file_extension(upload.filename)
    if extension not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Invalid file type for {field}: '{upload.filename}'. "
                f"Allowed types: {_allowed(allowed)}"
            ),
        )
    return extension


async def store_uploads(
    uploads: list[tuple[str, UploadFile, int]],
) -> list[StoredFile]:
    """Write each ``(field, upload, max_bytes)`` to disk, all-or-nothing."""

    stored: list[StoredFile] = []
    try:
        for field, upload, max_bytes in uploads:
            stored.append(await save_upload(upload, field, max_bytes))
    except FileTooLargeError as exc:
        remove_files(item.path for item in stored)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{exc} (413 Payload Too Large)",
        ) from exc
    except StorageError as exc:
        remove_files(item.path for item in stored)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return stored


async def ingest_lecture_uploads(
    video: UploadFile | None,
    cob_params: UploadFile | None = None,
    reading_material: UploadFile | None = None,
    lesson_plan: UploadFile | None = None,
) -> LectureUploads:
    """Validate every file before writing any of them, then store them."""

    if video is None or not video.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No video selected!",
        )

    validate_extension(video, "video", settings.uploads.video_extensions)
    documents = dict(zip(SUPPORTING_FIELDS, (cob_params, reading_material, lesson_plan)))
    present = {field: upload for field, upload in documents.items() if upload is not None and upload.filename}
    for field, upload in present.items():
        validate_extension(upload, field, settings.uploads.document_extensions)

    queue: list[tuple[str, UploadFile, int]] = [("video", video, settings.uploads.max_video_bytes)]
    queue.extend(
        (field, upload, settings.uploads.max_document_bytes) for field, upload in present.items()
    )
    stored = await store_uploads(queue)

    if stored[0].size == 0:
        remove_files(item.path for item in stored)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded video file is empty",
        )

    by_field = {item.field: item for item in stored}
    logger.info("Stored lecture uploads: %s", ", ".join(item.path.name for item in stored))
    return LectureUploads(
        video=by_field["video"],
        cob_params=by_field.get("cobParams"),
        reading_material=by_field.get("readingMaterial"),
        lesson_plan=by_field.get("lessonPlan"),
    )


__all__ = [
    "LectureUploads",
    "SUPPORTING_FIELDS",
    "ingest_lecture_uploads",
    "store_uploads",
    "validate_extension",
]
