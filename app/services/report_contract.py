"""Pydantic models for validating the COB report JSON returned by Gemini.

The analysis requester, the persistence layer, the reconciler and the PDF
renderer all go through these schemas so downstream code receives a
normalized ``{"cob_report": {...}}`` document.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

PLACEHOLDER_VALUES = frozenset({"N/A", "Unknown School", "Unknown Teacher", "Name"})

_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def is_placeholder(value: Any) -> bool:
    """True when a header value is missing or one of the known placeholders."""

    if value is None:
        return True
    text = str(value).strip()
    return not text or text in PLACEHOLDER_VALUES


def _stringify(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


class CobHeader(BaseModel):
    facilitator: Optional[str] = None
    school: Optional[str] = None
    grade: Optional[str] = None
    section: Optional[str] = None
    subject: Optional[str] = None
    date: Optional[str] = None
    topic_blm: Optional[str] = None
    duration: Optional[str] = None
    session_type: Optional[str] = None

    model_config = {"extra": "allow"}

    @field_validator(
        "facilitator",
        "school",
        "grade",
        "section",
        "subject",
        "date",
        "topic_blm",
        "duration",
        "session_type",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _stringify(value)


class CobScores(BaseModel):
    overall_percentage: Optional[str] = None
    summary: Optional[str] = None

    model_config = {"extra": "allow"}

    @field_validator("overall_percentage", mode="before")
    @classmethod
    def coerce_percentage(cls, value: Any) -> Any:
        return _stringify(value)


class CobParameter(BaseModel):
    category: str = "General"
    name: str
    score: Optional[Union[int, float]] = None
    out_of: Optional[Union[int, float]] = None
    weight: Optional[str] = None
    comment: str = ""

    model_config = {"extra": "allow"}

    @field_validator("weight", mode="before")
    @classmethod
    def coerce_weight(cls, value: Any) -> Any:
        return _stringify(value)

    @field_validator("category", "comment", mode="before")
    @classmethod
    def default_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class CobReport(BaseModel):
    header: CobHeader = Field(default_factory=CobHeader)
    scores: CobScores = Field(default_factory=CobScores)
    parameters: List[CobParameter]
    what_happened: List[str] = Field(default_factory=list)
    highlights: List[str] = Field(default_factory=list)
    other_observations: List[str] = Field(default_factory=list)

    model_config = {"extra": "allow"}


class AnalysisReport(BaseModel):
    cob_report: CobReport

    model_config = {"extra": "allow"}

    @classmethod
    def from_json(cls, payload: str) -> "AnalysisReport":
        return parse_report_json(payload)


class ReportContractError(RuntimeError):
    """Raised when the model output cannot be validated as a COB report."""


def clean_json_payload(payload: str) -> str:
    """Strip Markdown code fences and keep the outermost JSON object."""

    if not payload:
        return ""

    cleaned = payload.strip()
    cleaned = cleaned.replace("```json", "").replace("```", "").strip()

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end != -1 and end > start:
        cleaned = cleaned[start : end + 1]

    return cleaned


def _lift_legacy_nesting(data: Any) -> Any:
    if isinstance(data, dict) and "cob_report" not in data:
        legacy = data.get("cob_analysis")
        if isinstance(legacy, dict) and "cob_report" in legacy:
            return {**data, "cob_report": legacy["cob_report"]}
    return data


def parse_report_json(payload: str) -> AnalysisReport:
    """Parse raw model text into an ``AnalysisReport``.

    One sanitisation pass removes trailing commas when the first parse fails.
    """

    cleaned = clean_json_payload(payload)
    if not cleaned:
        raise ReportContractError("Model returned an empty payload.")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        sanitised = _TRAILING_COMMA.sub(r"\1", cleaned)
        try:
            data = json.loads(sanitised)
        except json.JSONDecodeError as exc:
            raise ReportContractError(f"Invalid JSON from model: {exc}") from exc

    try:
        return AnalysisReport.model_validate(_lift_legacy_nesting(data))
    except ValidationError as exc:
        raise ReportContractError(f"Report does not match the COB schema: {exc}") from exc


def load_analysis_data(raw: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    """Return the stored analysis document as a dict, tolerating bad input."""

    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def extract_cob_report(data: Dict[str, Any]) -> Dict[str, Any]:
    """Locate the ``cob_report`` block, accepting the legacy nesting."""

    cob = data.get("cob_report")
    if isinstance(cob, dict):
        return cob
    legacy = data.get("cob_analysis")
    if isinstance(legacy, dict) and isinstance(legacy.get("cob_report"), dict):
        return legacy["cob_report"]
    return {}


def parse_stored_report(raw: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    return extract_cob_report(load_analysis_data(raw))


__all__ = [
    "AnalysisReport",
    "CobHeader",
    "CobParameter",
    "CobReport",
    "CobScores",
    "PLACEHOLDER_VALUES",
    "clean_json_payload",
    "ReportContractError",
    "extract_cob_report",
    "is_placeholder",
    "load_analysis_data",
    "parse_report_json",
    "parse_stored_report",
]
