"""Single-document analysis endpoint."""

from __future__ import annotations

from openpyxl import Workbook

from app.services.gemini_client import GeminiInvocationError


def _xlsx_bytes(tmp_path):
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "COB"
    sheet.append(["Category", "Parameter"])
    sheet.append(["Concepts", "Accuracy of explanation"])
    path = tmp_path / "cob.xlsx"
    workbook.save(str(path))
    return path.read_bytes()


def test_document_analysis_returns_model_json(client, tmp_path, fake_gemini, upload_dir):
    before = set(upload_dir.iterdir())

    response = client.post(
        "/analysis/documents",
        data={"analysis_type": "cob_params"},
        files={"file": ("cob.xlsx", _xlsx_bytes(tmp_path), "application/octet-stream")},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["analysis_type"] == "cob_params"
    assert body["source_type"] == "XLSX"
    assert body["data"] == {"summary": "A lesson plan about plants"}
    assert set(upload_dir.iterdir()) == before


def test_plain_text_answers_are_wrapped(client, tmp_path, fake_gemini):
    fake_gemini.document = "This spreadsheet lists one concept parameter."

    response = client.post(
        "/analysis/documents",
        files={"file": ("cob.xlsx", _xlsx_bytes(tmp_path), "application/octet-stream")},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["analysis"] == "This spreadsheet lists one concept parameter."
    assert "Accuracy of explanation" in data["raw_text"]


def test_unknown_analysis_type_is_rejected(client, tmp_path):
    response = client.post(
        "/analysis/documents",
        data={"analysis_type": "poetry"},
        files={"file": ("cob.xlsx", _xlsx_bytes(tmp_path), "application/octet-stream")},
    )

    assert response.status_code == 400


def test_unreadable_document_is_rejected(client):
    response = client.post(
        "/analysis/documents",
        files={"file": ("broken.pdf", b"not a pdf", "application/pdf")},
    )

    assert response.status_code == 400
    assert "Error reading file broken.pdf" in response.json()["detail"]


def test_model_exhaustion_is_bad_gateway(client, tmp_path, fake_gemini):
    fake_gemini.document = lambda model: GeminiInvocationError(f"{model}: unavailable")

    response = client.post(
        "/analysis/documents",
        files={"file": ("cob.xlsx", _xlsx_bytes(tmp_path), "application/octet-stream")},
    )

    assert response.status_code == 502
