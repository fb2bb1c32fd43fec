"""Text extraction for PDF, Word and Excel uploads."""

from __future__ import annotations

import asyncio

from docx import Document
from openpyxl import Workbook
from reportlab.pdfgen import canvas

from app.services.document_extractor import extract, extract_many


def _make_pdf(path, lines):
    pdf = canvas.Canvas(str(path))
    y = 800
    for line in lines:
        pdf.drawString(72, y, line)
        y -= 20
    pdf.save()
    return path


def test_pdf_text_is_extracted(tmp_path):
    path = _make_pdf(tmp_path / "plan.pdf", ["Lesson plan: Photosynthesis", "Objective one"])

    result = extract(path)

    assert result.ok
    assert result.kind == "pdf"
    assert "Photosynthesis" in result.text
    assert "Objective one" in result.text


def test_docx_paragraphs_and_table_cells(tmp_path):
    document = Document()
    document.add_paragraph("Reading material for Grade 7")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Chlorophyll"
    table.rows[0].cells[1].text = "Green pigment"
    path = tmp_path / "reading.docx"
    document.save(str(path))

    result = extract(path)

    assert result.ok
    assert "Reading material for Grade 7" in result.text
    assert "Chlorophyll | Green pigment" in result.text


def test_xlsx_sheets_become_csv_sections(tmp_path):
    workbook = Workbook()
    first = workbook.active
    first.title = "Parameters"
    first.append(["Category", "Name", "Out of"])
    first.append(["Concepts", "Clarity", 2])
    second = workbook.create_sheet("Weights")
    second.append(["Concepts", 55])
    path = tmp_path / "cob.xlsx"
    workbook.save(str(path))

    result = extract(path)

    assert result.ok
    assert "## Sheet: Parameters" in result.text
    assert "Concepts,Clarity,2" in result.text
    assert "## Sheet: Weights" in result.text
    assert result.text.index("## Sheet: Parameters") < result.text.index("## Sheet: Weights")


def test_corrupt_pdf_yields_placeholder_instead_of_raising(tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf at all")

    result = extract(path)

    assert not result.ok
    assert result.text == "[Error reading file broken.pdf]"


def test_legacy_formats_are_reported_unsupported(tmp_path):
    path = tmp_path / "old.doc"
    path.write_bytes(b"\xd0\xcf\x11\xe0")

    result = extract(path, display_name="Old Plan.doc")

    assert not result.ok
    assert result.kind == "doc"
    assert result.text == "[Unsupported file type for Old Plan.doc]"


def test_extract_many_preserves_order_and_gaps(tmp_path):
    pdf_path = _make_pdf(tmp_path / "a.pdf", ["Alpha document"])
    broken = tmp_path / "b.xlsx"
    broken.write_bytes(b"garbage")

    results = asyncio.run(extract_many([pdf_path, None, broken]))

    assert len(results) == 3
    assert "Alpha document" in results[0].text
    assert results[1] is None
    assert results[2].text == "[Error reading file b.xlsx]"
