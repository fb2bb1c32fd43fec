"""Lecture analysis pipeline package.

Modules are organised by the order in which an uploaded lecture is analysed:

1. `ingestion` – validate and store the uploaded video and documents.
2. `transcription` – ffmpeg transcode, Gemini upload/poll, transcript fallback.
3. `prompts` – assemble the auditor prompt with rubric and metadata.
4. `llm` – call the analysis models and validate the COB report contract.
5. `persistence` – lecture metadata, rubric lookup and report upserts.
6. `reconcile` – patch placeholder header fields on stored reports.
7. `flow` – the background orchestration tying the stages together.

`documents` holds the standalone single-document analyzer.
"""

from .documents import DocumentAnalysisError, analyze_document
from .flow import LectureAnalysisPipeline, PipelineStage, run_lecture_analysis
from .ingestion import LectureUploads, ingest_lecture_uploads, store_uploads, validate_extension
from .llm import AnalysisError, apply_metadata_overrides, mock_report, request_analysis
from .persistence import lecture_metadata, load_lecture, load_report, save_report
from .prompts import build_analysis_prompt, rubric_category_for_grade
from .reconcile import needs_patching, reconcile_header, reconcile_report
from .transcription import TranscriptionError, transcribe_lecture
from .types import (
    AnalysisOutcome,
    DocumentAnalysis,
    LectureMetadata,
    SupportingTexts,
    TranscriptResult,
)

__all__ = [
    "AnalysisError",
    "AnalysisOutcome",
    "DocumentAnalysis",
    "DocumentAnalysisError",
    "LectureAnalysisPipeline",
    "LectureMetadata",
    "LectureUploads",
    "PipelineStage",
    "SupportingTexts",
    "TranscriptResult",
    "TranscriptionError",
    "analyze_document",
    "apply_metadata_overrides",
    "build_analysis_prompt",
    "ingest_lecture_uploads",
    "lecture_metadata",
    "load_lecture",
    "load_report",
    "mock_report",
    "needs_patching",
    "reconcile_header",
    "reconcile_report",
    "request_analysis",
    "rubric_category_for_grade",
    "run_lecture_analysis",
    "save_report",
    "store_uploads",
    "transcribe_lecture",
    "validate_extension",
]
