"""Plain-text extraction for uploaded PDF, Word and Excel documents.

The extractor never raises on a corrupt or unsupported file: callers always
receive an ``ExtractionResult`` whose ``ok`` flag tells them whether ``text``
is real document content or a placeholder.
"""

from __future__ import annotations

import asyncio
import csv
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from docx import Document
from fastapi.concurrency import run_in_threadpool
from openpyxl import load_workbook
from pypdf import PdfReader

logger = logging.getLogger(__name__)

_KIND_BY_EXTENSION = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".xlsx": "xlsx",
    ".doc": "doc",
    ".xls": "xls",
}


@dataclass(frozen=True)
class ExtractionResult:
    """Text pulled out of one document."""

    path: str
    kind: str
    text: str
    ok: bool = True


def _read_pdf(path: Path) -> str:
    reader = PdfReader(str(path))
    pages = [(page.extract_text() or "").strip() for page in reader.pages]
    return "\n\n".join(page for page in pages if page)


def _read_docx(path: Path) -> str:
    document = Document(str(path))
    parts = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                parts.append(" | ".join(cells))
    return "\n".join(parts)


def _read_xlsx(path: Path) -> str:
    workbook = load_workbook(str(path), read_only=True, data_only=True)
    try:
        sections: list[str] = []
        for sheet in workbook.worksheets:
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            for row in sheet.iter_rows(values_only=True):
                if row is None or all(value is None for value in row):
                    continue
                writer.writerow(["" if value is None else value for value in row])
            sections.append(f"## Sheet: {sheet.title}\n{buffer.getvalue().rstrip()}")
        return "\n\n".join(sections)
    finally:
        workbook.close()


_READERS = {
    "pdf": _read_pdf,
    "docx": _read_docx,
    "xlsx": _read_xlsx,
}


_PLACEHOLDER_PREFIXES = ("[Unsupported file type for ", "[Error reading file ")


def is_placeholder(text: str | None) -> bool:
    """True when ``text`` is the stand-in written for an unreadable document."""

    return bool(text) and text.strip().startswith(_PLACEHOLDER_PREFIXES)


def extract(path: str | Path, display_name: Optional[str] = None) -> ExtractionResult:
    """Extract text from ``path`` based on its extension."""

    file_path = Path(path)
    name = display_name or file_path.name
    kind = _KIND_BY_EXTENSION.get(file_path.suffix.lower(), "unknown")

    reader = _READERS.get(kind)
    if reader is None:
        logger.info("Unsupported document type for %s", name)
        return ExtractionResult(
            path=str(file_path),
            kind=kind,
            text=f"[Unsupported file type for {name}]",
            ok=False,
        )

    try:
        text = reader(file_path)
    except Exception as exc:
        logger.warning("Error reading %s: %s", name, exc)
        return ExtractionResult(
            path=str(file_path),
            kind=kind,
            text=f"[Error reading file {name}]",
            ok=False,
        )

    return ExtractionResult(path=str(file_path), kind=kind, text=text.strip())


async def extract_async(
    path: str | Path,
    display_name: Optional[str] = None,
) -> ExtractionResult:
    return await run_in_threadpool(extract, path, display_name)


async def extract_many(
    paths: Iterable[str | Path | None],
) -> list[ExtractionResult | None]:
    """Extract several documents in parallel, preserving order and ``None`` gaps."""

    async def _maybe(path: str | Path | None) -> ExtractionResult | None:
        if path is None:
            return None
        return await extract_async(path)

    return list(await asyncio.gather(*(_maybe(path) for path in paths)))


__all__ = ["ExtractionResult", "extract", "extract_async", "extract_many", "is_placeholder"]
