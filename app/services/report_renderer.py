"""Classroom Observation (COB) report rendering with the reportlab canvas API."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence
from uuid import uuid4

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from app.services.report_contract import extract_cob_report, load_analysis_data

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 50
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
# Parameter rows never start below this y coordinate (points from the bottom edge).
BOTTOM_THRESHOLD = 110
ROW_HEIGHT = 70

SEGMENTS: tuple[str, ...] = (
    "Concepts",
    "Delivery",
    "Language",
    "Resources",
    "Time Utilisation",
    "Plan Adherence",
)

_INK = HexColor("#1e293b")
_MUTED = HexColor("#64748b")
_ACCENT = HexColor("#2563eb")
_RULE = HexColor("#e2e8f0")
_BADGE = HexColor("#f1f5f9")
_ROW_EVEN = HexColor("#f8fafc")
_SECTION = HexColor("#e6e6e6")


class ReportRenderError(RuntimeError):
    """Raised when the report PDF cannot be written."""


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def segment_score(parameters: Optional[Iterable[Any]], keyword: str) -> float:
    """Percentage achieved across parameters whose category contains ``keyword``."""

    total = 0.0
    maximum = 0.0
    for param in parameters or []:
        category = _field(param, "category")
        if not category or keyword not in str(category):
            continue
        total += _as_number(_field(param, "score")) or 0.0
        maximum += _as_number(_field(param, "out_of")) or 0.0
    if not maximum:
        return 0.0
    return round(total / maximum * 100, 2)


def segment_scores(parameters: Optional[Iterable[Any]]) -> dict[str, float]:
    params = list(parameters or [])
    return {segment: segment_score(params, segment) for segment in SEGMENTS}


def category_weight(category: str) -> int:
    if "Concept" in category:
        return 55
    if "Delivery" in category:
        return 20
    if "Language" in category:
        return 10
    if "Resources" in category:
        return 10
    if "Time" in category:
        return 10
    return 0


def parameter_weight(name: str) -> int:
    if "Rectification" in name:
        return 30
    if "Resource" in name:
        return 10
    return 100


def rubric_description(score: Any) -> str:
    value = _as_number(score)
    if value == 2:
        return "(Meets expectation)"
    if value == 1:
        return "(Partial/One error)"
    if value == 0:
        return "(Multiple errors)"
    return ""


def weighted_contribution(param: Any) -> str:
    score = _as_number(_field(param, "score"))
    out_of = _as_number(_field(param, "out_of"))
    if not score or not out_of:
        return "-"
    name = str(_field(param, "name") or "")
    return f"{score / out_of * parameter_weight(name):.1f}%"


def _format_number(value: Any) -> str:
    number = _as_number(value)
    if number is None:
        return "-" if value in (None, "") else str(value)
    return str(int(number)) if number.is_integer() else f"{number:g}"


class _PageWriter:
    """Track the vertical cursor and start new pages when space runs out."""

    def __init__(self, pdf: canvas.Canvas) -> None:
        self.pdf = pdf
        self.y = PAGE_HEIGHT - MARGIN
        self.pages = 1

    def new_page(self) -> None:
        self.pdf.showPage()
        self.pages += 1
        self.y = PAGE_HEIGHT - MARGIN

    def ensure(self, height: float) -> None:
        if self.y - height < BOTTOM_THRESHOLD:
            self.new_page()

    def text(
        self,
        value: str,
        *,
        x: float = MARGIN,
        size: float = 10,
        font: str = "Helvetica",
        color: Any = _INK,
        width: float = CONTENT_WIDTH,
        leading: float | None = None,
    ) -> None:
        leading = leading or size + 3
        lines = simpleSplit(value or "", font, size, width) or [""]
        self.pdf.setFont(font, size)
        self.pdf.setFillColor(color)
        for line in lines:
            self.ensure(leading)
            self.pdf.drawString(x, self.y - size, line)
            self.y -= leading


def _draw_header(writer: _PageWriter, header: Mapping[str, Any], scores: Mapping[str, Any], lecture_id: Any) -> None:
    pdf = writer.pdf
    top = PAGE_HEIGHT - MARGIN

    pdf.setFillColor(_MUTED)
    pdf.setFont("Helvetica", 10)
    pdf.drawString(MARGIN, top - 10, "AI SCHOOL MANAGER")
    pdf.setFillColor(_INK)
    pdf.setFont("Helvetica-Bold", 22)
    pdf.drawString(MARGIN, top - 38, "Classroom Observation Report")
    pdf.setStrokeColor(_RULE)
    pdf.line(MARGIN, top - 52, PAGE_WIDTH - MARGIN, top - 52)

    row_top = top - 72
    for label, value, x in (
        ("FACILITATOR", header.get("facilitator"), MARGIN),
        ("SCHOOL", header.get("school"), MARGIN + 200),
    ):
        pdf.setFillColor(_MUTED)
        pdf.setFont("Helvetica-Bold", 9)
        pdf.drawString(x, row_top, label)
        pdf.setFillColor(_INK)
        pdf.setFont("Helvetica", 12)
        pdf.drawString(x, row_top - 16, str(value or "Unknown")[:32])

    badge_x = PAGE_WIDTH - MARGIN - 100
    pdf.setFillColor(_BADGE)
    pdf.roundRect(badge_x, row_top - 38, 100, 50, 10, stroke=0, fill=1)
    pdf.setFillColor(_MUTED)
    pdf.setFont("Helvetica", 8)
    pdf.drawString(badge_x + 20, row_top - 2, "AI SCORE")
    pdf.setFillColor(_ACCENT)
    pdf.setFont("Helvetica-Bold", 20)
    pdf.drawString(badge_x + 20, row_top - 28, str(scores.get("overall_percentage") or "N/A"))

    writer.y = row_top - 60
    writer.text("Analysis Details", size=14, font="Helvetica-Bold")
    writer.y -= 4
    grade = header.get("grade") or "-"
    section = header.get("section") or "-"
    writer.text(f"Lecture ID: #{lecture_id if lecture_id is not None else '-'}  |  Date: {header.get('date') or '-'}")
    writer.text(f"Class: {grade} - {section}  |  Subject: {header.get('subject') or '-'}")
    topic = header.get("topic_blm")
    if topic:
        writer.text(f"Topic: {topic}  |  Duration: {header.get('duration') or '-'}")
    summary = scores.get("summary")
    if summary:
        writer.y -= 6
        writer.text(str(summary), size=9, font="Helvetica-Oblique", color=_MUTED)
    writer.y -= 14


def _draw_segments(writer: _PageWriter, parameters: Sequence[Any]) -> None:
    writer.ensure(90)
    writer.text("Segment Scores", size=14, font="Helvetica-Bold")
    writer.y -= 6

    pdf = writer.pdf
    box_width = (CONTENT_WIDTH - 5 * 8) / 6
    top = writer.y
    for index, segment in enumerate(SEGMENTS):
        x = MARGIN + index * (box_width + 8)
        pdf.setStrokeColor(HexColor("#cbd5e1"))
        pdf.rect(x, top - 44, box_width, 44, stroke=1, fill=0)
        pdf.setFillColor(_MUTED)
        pdf.setFont("Helvetica", 7)
        pdf.drawString(x + 4, top - 11, f"{segment.upper()[:16]} ({category_weight(segment)}%)")
        pdf.setFillColor(_INK)
        pdf.setFont("Helvetica-Bold", 12)
        pdf.drawString(x + 4, top - 32, f"{segment_score(parameters, segment):g}%")
    writer.y = top - 64


def _draw_parameters(writer: _PageWriter, parameters: Sequence[Any]) -> None:
    writer.ensure(ROW_HEIGHT + 30)
    writer.text("Detailed Parameters", size=16, font="Helvetica-Bold")
    writer.y -= 6

    pdf = writer.pdf
    current_category: str | None = None
    for index, param in enumerate(parameters):
        category = str(_field(param, "category") or "General")
        if category != current_category:
            writer.ensure(ROW_HEIGHT + 20)
            pdf.setFillColor(_SECTION)
            pdf.rect(MARGIN, writer.y - 16, CONTENT_WIDTH, 16, stroke=0, fill=1)
            pdf.setFillColor(_ACCENT)
            pdf.setFont("Helvetica-Bold", 9)
            pdf.drawRightString(
                PAGE_WIDTH - MARGIN - 8,
                writer.y - 12,
                f"{category} ({category_weight(category)}%)",
            )
            writer.y -= 20
            current_category = category

        writer.ensure(ROW_HEIGHT)
        row_top = writer.y
        if index % 2 == 0:
            pdf.setFillColor(_ROW_EVEN)
            pdf.rect(MARGIN, row_top - ROW_HEIGHT, CONTENT_WIDTH, ROW_HEIGHT, stroke=0, fill=1)

        name = str(_field(param, "name") or "Parameter")
        pdf.setFillColor(_INK)
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(MARGIN + 10, row_top - 14, name[:70])
        pdf.setFillColor(_MUTED)
        pdf.setFont("Helvetica", 8)
        pdf.drawString(MARGIN + 10, row_top - 26, rubric_description(_field(param, "score")))

        score_text = f"{_format_number(_field(param, 'score'))}/{_format_number(_field(param, 'out_of'))}"
        pdf.setFillColor(_ACCENT)
        pdf.setFont("Helvetica-Bold", 12)
        pdf.drawRightString(PAGE_WIDTH - MARGIN - 60, row_top - 16, score_text)
        pdf.setFillColor(_MUTED)
        pdf.setFont("Helvetica", 8)
        pdf.drawRightString(PAGE_WIDTH - MARGIN - 8, row_top - 16, weighted_contribution(param))

        comment = str(_field(param, "comment") or "No comment")
        pdf.setFillColor(HexColor("#334155"))
        pdf.setFont("Helvetica-Oblique", 8)
        comment_lines = simpleSplit(comment, "Helvetica-Oblique", 8, CONTENT_WIDTH - 20)[:3]
        for line_index, line in enumerate(comment_lines):
            pdf.drawString(MARGIN + 10, row_top - 40 - line_index * 10, line)

        writer.y = row_top - ROW_HEIGHT - 5


def _draw_list(writer: _PageWriter, title: str, items: Any) -> None:
    if not items:
        return
    if isinstance(items, str):
        items = [items]
    writer.y -= 10
    writer.ensure(40)
    writer.text(title, size=13, font="Helvetica-Bold")
    writer.y -= 2
    for item in items:
        writer.text(f"- {item}", x=MARGIN + 10, width=CONTENT_WIDTH - 10)


def render_report_pdf(
    analysis: Mapping[str, Any] | str,
    output_path: str | Path,
    *,
    lecture_id: Any = None,
) -> Path:
    """Draw the COB report for ``analysis`` into ``output_path``."""

    data = load_analysis_data(analysis)  # type: ignore[arg-type]
    cob = extract_cob_report(data)
    header = cob.get("header") or {}
    scores = cob.get("scores") or {}
    parameters = cob.get("parameters") or []
    if lecture_id is None:
        lecture_id = (data.get("meta") or {}).get("lecture_id")

    target = Path(output_path)
    # Overlapping runs for one lecture each draw into their own file.
    scratch = target.with_name(f".{target.name}.{uuid4().hex}")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        pdf = canvas.Canvas(str(scratch), pagesize=A4)
        pdf.setTitle(f"COB Report {lecture_id}" if lecture_id is not None else "COB Report")
        writer = _PageWriter(pdf)

        _draw_header(writer, header, scores, lecture_id)
        _draw_segments(writer, parameters)
        if parameters:
            _draw_parameters(writer, parameters)
        _draw_list(writer, "What Happened", cob.get("what_happened"))
        _draw_list(writer, "Highlights", cob.get("highlights"))
        _draw_list(writer, "Other Observations", cob.get("other_observations"))

        pdf.save()
        os.replace(scratch, target)
    except (OSError, ValueError, TypeError) as exc:
        scratch.unlink(missing_ok=True)
        raise ReportRenderError(f"Could not render report PDF: {exc}") from exc

    logger.info("Rendered report PDF %s (%s pages)", target.name, writer.pages)
    return target


__all__ = [
    "BOTTOM_THRESHOLD",
    "ReportRenderError",
    "SEGMENTS",
    "category_weight",
    "parameter_weight",
    "render_report_pdf",
    "rubric_description",
    "segment_score",
    "segment_scores",
    "weighted_contribution",
]
