"""Local disk storage for uploaded lecture videos, documents and rendered reports."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable
from uuid import uuid4

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from app.config.settings import settings
from app.telemetry import record_upload

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"


class StorageError(RuntimeError):
    """Raised when an upload cannot be persisted to disk."""


class FileTooLargeError(StorageError):
    """Raised when an upload exceeds its configured size limit."""

    def __init__(self, original_name: str, max_bytes: int) -> None:
        self.original_name = original_name
        self.max_bytes = max_bytes
        limit_mb = max_bytes // (1024 * 1024)
        super().__init__(f"File too large: {original_name} exceeds the {limit_mb} MB limit")


@dataclass(frozen=True)
class StoredFile:
    """A file written to the uploads directory."""

    field: str
    original_name: str
    path: Path
    size: int

    @property
    def extension(self) -> str:
        return self.path.suffix.lower()

    @property
    def public_url(self) -> str:
        return f"{PUBLIC_PREFIX}/{self.path.name}"


def upload_root() -> Path:
    root = Path(settings.uploads.directory)
    root.mkdir(parents=True, exist_ok=True)
    return root


def file_extension(filename: str | None) -> str:
    return Path(filename or "").suffix.lower()


def stored_filename(field: str, original_name: str | None) -> str:
    """Return ``<field>-<unix-ms>-<random hex><ext>``."""

    millis = int(time.time() * 1000)
    return f"{field}-{millis}-{uuid4().hex[:12]}{file_extension(original_name)}"


def resolve_stored_path(reference: str) -> Path:
    """Map a public ``/uploads/<name>`` reference back to its location on disk."""

    name = reference
    if reference.startswith(PUBLIC_PREFIX + "/"):
        name = reference[len(PUBLIC_PREFIX) + 1 :]
    return upload_root() / Path(name).name


def report_pdf_path(lecture_id: int) -> Path:
    return upload_root() / f"report-{lecture_id}.pdf"


def report_pdf_url(lecture_id: int) -> str:
    return f"{PUBLIC_PREFIX}/report-{lecture_id}.pdf"


async def save_upload(upload: UploadFile, field: str, max_bytes: int) -> StoredFile:
    """Stream an upload to disk in chunks, enforcing ``max_bytes``.

    The partial file is removed when the limit is exceeded or writing fails.
    """

    original_name = upload.filename or field
    target = upload_root() / stored_filename(field, original_name)
    chunk_size = settings.uploads.chunk_size
    written = 0

    try:
        with target.open("wb") as handle:
            while True:
                chunk = await upload.read(chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise FileTooLargeError(original_name, max_bytes)
                await run_in_threadpool(handle.write, chunk)
    except FileTooLargeError:
        remove_files([target])
        raise
    except OSError as exc:
        remove_files([target])
        raise StorageError(f"Failed to store {original_name}: {exc}") from exc
    finally:
        await upload.close()

    logger.info("Stored upload field=%s name=%s bytes=%s", field, target.name, written)
    record_upload(field, written)
    return StoredFile(field=field, original_name=original_name, path=target, size=written)


def remove_files(paths: Iterable[Path | str | None]) -> None:
    """Delete files if they exist; failures are logged, not raised."""

    for path in paths:
        if not path:
            continue
        try:
            os.remove(path)
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.warning("Could not delete %s: %s", path, exc)


__all__ = [
    "FileTooLargeError",
    "PUBLIC_PREFIX",
    "StorageError",
    "StoredFile",
    "file_extension",
    "remove_files",
    "report_pdf_path",
    "report_pdf_url",
    "resolve_stored_path",
    "save_upload",
    "stored_filename",
    "upload_root",
]
