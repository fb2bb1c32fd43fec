"""Metadata reconciliation for stored reports with placeholder header fields."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.lecture import Lecture
from app.models.report import Report
from app.services.report_contract import is_placeholder, load_analysis_data

from .persistence import lecture_metadata
from .types import LectureMetadata

logger = logging.getLogger("app.services.analysis_pipeline")

RECONCILED_FIELDS = ("school", "facilitator", "grade", "section", "date")


def needs_patching(header: Mapping[str, Any] | None) -> bool:
    if not header:
        return True
    return any(is_placeholder(header.get(field)) for field in RECONCILED_FIELDS)


def reconcile_header(
    header: Mapping[str, Any] | None,
    metadata: LectureMetadata,
) -> tuple[dict[str, Any], bool]:
    """Fill placeholder fields from ``metadata``; real values are left alone."""

    patched = dict(header or {})
    changed = False
    for field in RECONCILED_FIELDS:
        if not is_placeholder(patched.get(field)):
            continue
        value = getattr(metadata, field)
        if is_placeholder(value):
            continue
        patched[field] = value
        changed = True
    return patched, changed


async def reconcile_report(
    session: AsyncSession,
    report: Report,
    lecture: Lecture,
) -> bool:
    """Patch and persist the report header when it carries placeholders.

    Returns True when the stored JSON changed, so callers know any cached PDF
    is stale.
    """

    data = load_analysis_data(report.analysis_data)
    if "cob_report" in data and isinstance(data["cob_report"], dict):
        cob = data["cob_report"]
    elif isinstance(data.get("cob_analysis"), dict) and isinstance(
        data["cob_analysis"].get("cob_report"), dict
    ):
        cob = data["cob_analysis"]["cob_report"]
    else:
        cob = data.setdefault("cob_report", {})

    header = cob.get("header") if isinstance(cob.get("header"), dict) else None
    if not needs_patching(header):
        return False

    patched, changed = reconcile_header(header, lecture_metadata(lecture))
    if not changed:
        return False

    cob["header"] = patched
    report.analysis_data = json.dumps(data, default=str)
    await session.commit()
    logger.info("Reconciled report header for lecture %s", lecture.id)
    return True


__all__ = ["RECONCILED_FIELDS", "needs_patching", "reconcile_header", "reconcile_report"]
