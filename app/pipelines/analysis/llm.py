"""COB analysis stage: prompt the analysis models and validate the report."""

from __future__ import annotations

import logging
from datetime import date

from app.config.settings import settings
from app.services.gemini_client import GeminiClient
from app.services.model_fallback import AllModelsFailedError, first_success
from app.services.report_contract import AnalysisReport, is_placeholder, parse_report_json

from .types import AnalysisOutcome, LectureMetadata

logger = logging.getLogger("app.services.analysis_pipeline")

OVERRIDABLE_FIELDS = ("facilitator", "school", "grade", "section", "subject", "date")


class AnalysisError(RuntimeError):
    """Raised when no analysis model produced a valid report and mocks are disabled."""


def _truncate(value: str, max_length: int = 500) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


def mock_report() -> AnalysisReport:
    """Canned report used when every analysis model fails."""

    return AnalysisReport.model_validate(
        {
            "cob_report": {
                "header": {
                    "facilitator": "Mock Teacher",
                    "topic_blm": "Mock Topic - Algebra",
                    "duration": "45m",
                    "session_type": "Classroom",
                    "school": "Greenwood High",
                    "grade": "7",
                    "date": date.today().isoformat(),
                },
                "scores": {
                    "overall_percentage": "78%",
                    "summary": (
                        "(MOCK) The session was interactive but pace was fast. Concepts were "
                        "covered but some students seemed confused. Note: This is an "
                        "AI-simulated report because the analysis models were unavailable."
                    ),
                },
                "parameters": [
                    {
                        "category": "Concepts",
                        "name": "Concepts & Explanation",
                        "score": 2,
                        "out_of": 2,
                        "comment": "Observed: No conceptual errors found. Teacher explained the topics clearly.",
                    },
                    {
                        "category": "Concepts",
                        "name": "Rectification - Concepts",
                        "score": 2,
                        "out_of": 2,
                        "comment": "Observed: All student errors were rectified immediately and correctly.",
                    },
                    {
                        "category": "Delivery",
                        "name": "Speaking Skills & Language",
                        "score": 1,
                        "out_of": 2,
                        "comment": "Observed: Generally clear but some pronunciation issues with 'Algebraic'.",
                    },
                    {
                        "category": "Resources",
                        "name": "Resources & Aids",
                        "score": 1,
                        "out_of": 1,
                        "comment": "Observed: Teacher used the whiteboard effectively.",
                    },
                    {
                        "category": "Time Utilisation",
                        "name": "Time Management",
                        "score": 1,
                        "out_of": 1,
                        "comment": "Observed: Session started and ended on time.",
                    },
                    {
                        "category": "Plan Adherence",
                        "name": "Lesson Plan Followed",
                        "score": 1,
                        "out_of": 1,
                        "comment": "Observed: Followed the sequence defined in the plan.",
                    },
                ],
                "what_happened": [
                    "The facilitator covered the planned concepts in the session.",
                    "The session began with the facilitator stating the agenda.",
                    "The session concluded with a homework assignment.",
                ],
                "highlights": ["Good energy", "Clear instructions"],
                "other_observations": ["Students were engaged"],
            }
        }
    )


def apply_metadata_overrides(
    report: AnalysisReport,
    metadata: LectureMetadata,
) -> AnalysisReport:
    """Overwrite header fields with caller values that are real (not placeholders)."""

    header = report.cob_report.header
    for field_name in OVERRIDABLE_FIELDS:
        value = getattr(metadata, field_name)
        if not is_placeholder(value):
            setattr(header, field_name, str(value))
    return report


async def request_analysis(
    client: GeminiClient,
    *,
    prompt: str,
    metadata: LectureMetadata,
) -> AnalysisOutcome:
    """Walk the analysis model list until one returns a valid COB report."""

    async def _attempt(model: str) -> AnalysisReport | None:
        raw_response = await client.generate(
            model=model,
            prompt=prompt,
            response_mime_type="application/json",
        )
        if not raw_response:
            return None
        logger.info("Raw analysis response model=%s: %s", model, _truncate(raw_response))
        return parse_report_json(raw_response)

    try:
        model, report = await first_success(
            settings.gemini.analysis_models,
            _attempt,
            stage="analysis",
        )
    except AllModelsFailedError as exc:
        if not settings.analysis.mock_fallback:
            raise AnalysisError(str(exc)) from exc
        logger.warning("All analysis models failed; returning mock report. %s", exc)
        return AnalysisOutcome(
            report=apply_metadata_overrides(mock_report(), metadata),
            model=None,
            used_mock=True,
        )

    return AnalysisOutcome(
        report=apply_metadata_overrides(report, metadata),
        model=model,
    )


__all__ = [
    "AnalysisError",
    "OVERRIDABLE_FIELDS",
    "apply_metadata_overrides",
    "mock_report",
    "request_analysis",
]
