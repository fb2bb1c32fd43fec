"""End-to-end orchestration of a lecture analysis run.

The upload controller schedules :func:`run_lecture_analysis` as a background
task once the files are on disk. Stages run in this order:

1. ``ingestion`` – validate and store the video and supporting documents.
2. ``document_extractor`` – pull text from the supporting documents in parallel.
3. ``transcription`` – transcode with ffmpeg, upload, poll, transcribe.
4. ``prompts`` – combine rubric, transcript, documents and metadata.
5. ``llm`` – call the analysis models and validate the COB report.
6. ``report_renderer`` – draw the report PDF.
7. ``persistence`` – upsert the report row and mark the lecture analysed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence

from fastapi.concurrency import run_in_threadpool

from app.database import session_scope
from app.models.lecture import AnalysisStatus
from app.services.document_extractor import extract_many
from app.services.file_storage import remove_files, report_pdf_path, resolve_stored_path
from app.services.gemini_client import GeminiClient
from app.services.report_renderer import (
    ReportRenderError,
    render_report_pdf,
    segment_scores,
)
from app.telemetry import record_analysis_run

from .llm import request_analysis
from .persistence import (
    build_report_document,
    lecture_metadata,
    load_lecture,
    load_rubric_text,
    save_report,
)
from .prompts import build_analysis_prompt
from .transcription import transcribe_lecture
from .types import SupportingTexts

logger = logging.getLogger("app.services.analysis_pipeline")


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the analysis pipeline."""

    order: int
    name: str
    module: str
    summary: str


class LectureAnalysisPipeline:
    """Utility wrapper for documenting the lecture analysis flow."""

    _STAGES: List[PipelineStage] = [
        PipelineStage(
            1,
            "Ingestion",
            "app.pipelines.analysis.ingestion",
            "Validate extensions and sizes, stream the video and documents to disk.",
        ),
        PipelineStage(
            2,
            "Document Extraction",
            "app.services.document_extractor",
            "Extract PDF/DOCX/XLSX text for the supporting documents in parallel.",
        ),
        PipelineStage(
            3,
            "Transcription",
            "app.pipelines.analysis.transcription",
            "Transcode to MP3, upload to Gemini, poll until active, transcribe with fallback.",
        ),
        PipelineStage(
            4,
            "Prompt Assembly",
            "app.pipelines.analysis.prompts",
            "Combine auditor instructions, grade rubric, transcript, documents and metadata.",
        ),
        PipelineStage(
            5,
            "Analysis",
            "app.pipelines.analysis.llm",
            "Walk the analysis models, validate the COB JSON, apply metadata precedence.",
        ),
        PipelineStage(
            6,
            "Rendering",
            "app.services.report_renderer",
            "Draw the COB report PDF into the uploads directory.",
        ),
        PipelineStage(
            7,
            "Persistence",
            "app.pipelines.analysis.persistence",
            "Upsert the report row and mark the lecture analysis as succeeded.",
        ),
    ]

    @classmethod
    def describe(cls) -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(cls._STAGES)


async def extract_supporting_texts(
    cob_params: Path | None = None,
    reading_material: Path | None = None,
    lesson_plan: Path | None = None,
) -> SupportingTexts:
    results = await extract_many([cob_params, reading_material, lesson_plan])
    texts = [result.text if result is not None else "" for result in results]
    return SupportingTexts(
        cob_params=texts[0],
        reading_material=texts[1],
        lesson_plan=texts[2],
    )


def _supporting_paths(references: Sequence[str | None] | None) -> list[Path | None]:
    paths: list[Path | None] = []
    for reference in list(references or [])[:3]:
        path = resolve_stored_path(reference) if reference else None
        if path is not None and not path.exists():
            logger.warning("Supporting document %s is missing; skipping it", reference)
            path = None
        paths.append(path)
    return paths + [None] * (3 - len(paths))


async def _mark_failed(lecture_id: int, message: str) -> None:
    async with session_scope() as session:
        lecture = await load_lecture(session, lecture_id)
        if lecture is None:
            return
        lecture.analysis_status = AnalysisStatus.FAILED
        lecture.analysis_error = message[:2000]
        await session.commit()


async def run_lecture_analysis(lecture_id: int, client: GeminiClient) -> bool:
    """Analyse the stored video for ``lecture_id``; returns True on success.

    Supporting documents are read from the references stored on the lecture,
    so a re-run sees the same COB parameters, reading material and lesson plan
    as the upload. Failures are recorded on the lecture (``analysis_status=failed``
    plus the error message) and no report row is written.
    """
    started = time.perf_counter()

    try:
        async with session_scope() as session:
            lecture = await load_lecture(session, lecture_id)
            if lecture is None:
                logger.warning("Lecture %s disappeared before analysis", lecture_id)
                return False
            if not lecture.video_path:
                raise FileNotFoundError(f"Lecture {lecture_id} has no video")

            lecture.analysis_status = AnalysisStatus.PROCESSING
            lecture.analysis_error = None
            await session.commit()

            metadata = lecture_metadata(lecture)
            video_reference = lecture.video_path
            supporting_paths = _supporting_paths(lecture.supporting_documents)
            rubric_text = await load_rubric_text(session, metadata.grade)

        logger.info("Starting analysis for lecture %s (%s)", lecture_id, metadata.as_dict())
        supporting = await extract_supporting_texts(*supporting_paths)
        transcript = await transcribe_lecture(client, resolve_stored_path(video_reference))

        prompt = build_analysis_prompt(
            metadata=metadata,
            transcript=transcript.transcription,
            rubric=rubric_text,
            supporting=supporting,
        )
        outcome = await request_analysis(client, prompt=prompt, metadata=metadata)

        document = build_report_document(
            lecture_id=lecture_id,
            video_path=video_reference,
            outcome=outcome,
            transcript=transcript,
        )
        scores = segment_scores(document["cob_report"]["parameters"])

        try:
            await run_in_threadpool(
                render_report_pdf,
                document,
                report_pdf_path(lecture_id),
                lecture_id=lecture_id,
            )
        except ReportRenderError:
            logger.exception("PDF rendering failed for lecture %s", lecture_id)
            # A report from an earlier run must not be served for this one.
            remove_files([report_pdf_path(lecture_id)])

        async with session_scope() as session:
            await save_report(session, lecture_id, document, rubric_scores=scores)
            lecture = await load_lecture(session, lecture_id)
            if lecture is not None:
                lecture.analysis_status = AnalysisStatus.SUCCEEDED
                lecture.analysis_error = None
            await session.commit()
    except Exception as exc:
        logger.exception("Analysis failed for lecture %s", lecture_id)
        record_analysis_run("failed", time.perf_counter() - started)
        await _mark_failed(lecture_id, str(exc) or exc.__class__.__name__)
        return False

    record_analysis_run(
        "mock" if outcome.used_mock else "succeeded",
        time.perf_counter() - started,
    )
    logger.info("Analysis finished for lecture %s", lecture_id)
    return True


__all__ = [
    "LectureAnalysisPipeline",
    "PipelineStage",
    "extract_supporting_texts",
    "run_lecture_analysis",
]
