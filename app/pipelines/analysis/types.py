"""Typed containers shared across the lecture analysis pipeline.

These dataclasses live in their own module so the other stages
(`transcription`, `prompts`, `llm`, `flow`) can import them without
creating circular dependencies.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from app.services.report_contract import AnalysisReport


@dataclass(frozen=True)
class LectureMetadata:
    """Caller-side facts about a lecture that take precedence over the model."""

    facilitator: str = "Unknown Teacher"
    school: str = "Unknown School"
    grade: str = "N/A"
    section: str = "N/A"
    subject: str = "General"
    date: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SupportingTexts:
    """Text extracted from the optional documents uploaded with a video."""

    cob_params: str = ""
    reading_material: str = ""
    lesson_plan: str = ""


@dataclass(frozen=True)
class TranscriptResult:
    transcription: str
    model: str
    remote_uri: str | None = None
    sentiment: str = "Neutral"


@dataclass(frozen=True)
class AnalysisOutcome:
    """Validated report plus the model that produced it."""

    report: AnalysisReport
    model: str | None
    used_mock: bool = False


@dataclass(frozen=True)
class DocumentAnalysis:
    analysis_type: str
    source_type: str
    data: Mapping[str, Any] = field(default_factory=dict)
    model: str | None = None
    raw_response: str = ""


__all__ = [
    "AnalysisOutcome",
    "DocumentAnalysis",
    "LectureMetadata",
    "SupportingTexts",
    "TranscriptResult",
]
