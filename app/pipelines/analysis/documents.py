"""Single-document analysis: extract text and ask the document models for JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from app.config.settings import settings
from app.services.document_extractor import extract_async
from app.services.gemini_client import GeminiClient
from app.services.model_fallback import first_success
from app.services.report_contract import clean_json_payload

from .prompts import DOCUMENT_ANALYSIS_TYPES, build_document_prompt
from .types import DocumentAnalysis

logger = logging.getLogger("app.services.analysis_pipeline")


class DocumentAnalysisError(RuntimeError):
    """Raised when a document cannot be read for analysis."""


def _parse_document_response(raw_response: str, source_text: str) -> dict[str, Any]:
    try:
        data = json.loads(clean_json_payload(raw_response))
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict):
        return data
    snippet = source_text[:500] + ("..." if len(source_text) > 500 else "")
    return {"analysis": raw_response, "raw_text": snippet}


async def analyze_document(
    client: GeminiClient,
    path: str | Path,
    analysis_type: str = "content",
    *,
    display_name: str | None = None,
) -> DocumentAnalysis:
    """Extract ``path`` and return the first model's structured analysis."""

    if analysis_type not in DOCUMENT_ANALYSIS_TYPES:
        raise ValueError(f"Unsupported analysis type: {analysis_type}")

    extraction = await extract_async(path, display_name)
    if not extraction.ok:
        raise DocumentAnalysisError(extraction.text)

    source_type = extraction.kind.upper()
    prompt = build_document_prompt(extraction.text, analysis_type, source_type)

    async def _attempt(model: str) -> tuple[str, dict[str, Any]] | None:
        raw_response = await client.generate(model=model, prompt=prompt)
        if not raw_response:
            return None
        return raw_response, _parse_document_response(raw_response, extraction.text)

    model, (raw_response, data) = await first_success(
        settings.gemini.document_models,
        _attempt,
        stage="document",
    )
    logger.info("Document %s analysed as %s by %s", Path(path).name, analysis_type, model)
    return DocumentAnalysis(
        analysis_type=analysis_type,
        source_type=source_type,
        data=data,
        model=model,
        raw_response=raw_response,
    )


__all__ = ["DocumentAnalysisError", "analyze_document"]
