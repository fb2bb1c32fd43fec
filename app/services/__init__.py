"""Service layer helpers for external integrations."""

from .document_extractor import ExtractionResult, extract, extract_async, extract_many
from .file_storage import FileTooLargeError, StorageError, StoredFile
from .gemini_client import GeminiClient, GeminiInvocationError, RemoteFile
from .model_fallback import AllModelsFailedError, first_success
from .report_contract import AnalysisReport, ReportContractError, parse_report_json
from .report_renderer import ReportRenderError, render_report_pdf, segment_score

__all__ = [
    "AllModelsFailedError",
    "AnalysisReport",
    "ExtractionResult",
    "FileTooLargeError",
    "GeminiClient",
    "GeminiInvocationError",
    "RemoteFile",
    "ReportContractError",
    "ReportRenderError",
    "StorageError",
    "StoredFile",
    "extract",
    "extract_async",
    "extract_many",
    "first_success",
    "parse_report_json",
    "render_report_pdf",
    "segment_score",
]
