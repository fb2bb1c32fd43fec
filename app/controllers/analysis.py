"""Analysis endpoints: re-runs, stored reports, PDF downloads and documents."""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, File, Form, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse

from app.config.settings import settings
from app.controllers.dependencies import CurrentUserDep, GeminiClientDep, SessionDep
from app.controllers.lectures import get_lecture_or_404, pdf_url_for
from app.models.lecture import AnalysisStatus
from app.pipelines.analysis import (
    DocumentAnalysisError,
    analyze_document,
    load_report,
    reconcile_report,
    run_lecture_analysis,
    store_uploads,
    validate_extension,
)
from app.pipelines.analysis.prompts import DOCUMENT_ANALYSIS_TYPES
from app.services.file_storage import remove_files, report_pdf_path
from app.services.model_fallback import AllModelsFailedError
from app.services.report_contract import load_analysis_data
from app.services.report_renderer import ReportRenderError, render_report_pdf
from app.views import AnalysisAcceptedResponse, DocumentAnalysisResponse, ReportResponse

logger = logging.getLogger("app.services.analysis_pipeline")

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("/documents", response_model=DocumentAnalysisResponse)
async def analyze_single_document(
    client: GeminiClientDep,
    _current_user: CurrentUserDep,
    file: UploadFile = File(...),
    analysis_type: str = Form("content"),
) -> DocumentAnalysisResponse:
    """Extract one uploaded document and return the model's JSON analysis."""

    if analysis_type not in DOCUMENT_ANALYSIS_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Unsupported analysis type: {analysis_type}. "
                f"Allowed types: {', '.join(DOCUMENT_ANALYSIS_TYPES)}"
            ),
        )
    validate_extension(file, "document", settings.uploads.document_extensions)
    (stored,) = await store_uploads(
        [("document", file, settings.uploads.max_document_bytes)]
    )

    try:
        result = await analyze_document(
            client,
            stored.path,
            analysis_type,
            display_name=stored.original_name,
        )
    except (ValueError, DocumentAnalysisError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except AllModelsFailedError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Document analysis failed: {exc}",
        ) from exc
    finally:
        remove_files([stored.path])

    return DocumentAnalysisResponse(
        analysis_type=result.analysis_type,
        source_type=result.source_type,
        model=result.model,
        data=result.data,
    )


@router.post(
    "/{lecture_id}",
    response_model=AnalysisAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def rerun_analysis(
    lecture_id: int,
    background_tasks: BackgroundTasks,
    session: SessionDep,
    client: GeminiClientDep,
    _current_user: CurrentUserDep,
) -> AnalysisAcceptedResponse:
    """Analyse the lecture's stored video again; the report row is updated."""

    lecture = await get_lecture_or_404(session, lecture_id)
    if not lecture.video_path:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Lecture has no uploaded video to analyse",
        )

    lecture.analysis_status = AnalysisStatus.PROCESSING
    lecture.analysis_error = None
    await session.commit()

    background_tasks.add_task(run_lecture_analysis, lecture_id, client)
    return AnalysisAcceptedResponse(
        message="Analysis restarted",
        lecture_id=lecture_id,
    )


@router.get("/{lecture_id}", response_model=ReportResponse)
async def get_analysis(
    lecture_id: int,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> ReportResponse:
    """Return the stored report, patching placeholder header fields first."""

    lecture = await get_lecture_or_404(session, lecture_id)
    report = await load_report(session, lecture_id)
    if report is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Report not found"
        )

    if await reconcile_report(session, report, lecture):
        remove_files([report_pdf_path(lecture_id)])

    return ReportResponse(
        id=report.id,
        lecture_id=report.lecture_id,
        analysis_data=load_analysis_data(report.analysis_data),
        rubric_scores=report.rubric_scores,
        generated_by_ai=report.generated_by_ai,
        created_at=report.created_at,
        updated_at=report.updated_at,
        pdf_report_url=pdf_url_for(lecture_id, True),
    )


@router.get("/{lecture_id}/download", response_class=FileResponse)
async def download_report(
    lecture_id: int,
    session: SessionDep,
    _current_user: CurrentUserDep,
) -> FileResponse:
    """Serve the report PDF, rendering it when missing or stale."""

    lecture = await get_lecture_or_404(session, lecture_id)
    report = await load_report(session, lecture_id)
    if report is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Report not found"
        )

    patched = await reconcile_report(session, report, lecture)
    pdf_path = report_pdf_path(lecture_id)
    if patched or not pdf_path.exists():
        try:
            await run_in_threadpool(
                render_report_pdf,
                report.analysis_data,
                pdf_path,
                lecture_id=lecture_id,
            )
        except ReportRenderError as exc:
            logger.exception("Could not render report PDF for lecture %s", lecture_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(exc),
            ) from exc

    return FileResponse(
        pdf_path,
        media_type="application/pdf",
        filename=f"COB_Report_{lecture_id}.pdf",
    )
