"""End-to-end lecture upload: validation, background analysis and reports."""

from __future__ import annotations

import asyncio
import io
import json

import pytest
from docx import Document
from pypdf import PdfReader
from sqlalchemy import func, select

from app.config.settings import settings
from app.controllers.dependencies import get_current_user
from app.database import session_scope
from app.models.report import Report
from app.pipelines.analysis import flow, run_lecture_analysis, save_report, transcription
from app.pipelines.analysis.persistence import load_lecture
from app.pipelines.analysis.transcription import audio_path_for
from app.services.file_storage import report_pdf_path
from app.services.report_renderer import ReportRenderError

from conftest import create_school, create_teacher, model_report_json


@pytest.fixture(autouse=True)
def fake_ffmpeg(monkeypatch):
    async def fake_transcode(video_path):
        audio = audio_path_for(video_path)
        audio.write_bytes(b"ID3 fake audio")
        return audio

    monkeypatch.setattr(transcription, "transcode_to_audio", fake_transcode)


@pytest.fixture
def teacher(client):
    school = create_school(client)
    return create_teacher(client, school["id"], name="Jane Doe")


def _docx_bytes(tmp_path, text):
    document = Document()
    document.add_paragraph(text)
    path = tmp_path / "document.docx"
    document.save(str(path))
    return path.read_bytes()


def _upload(client, teacher, *, filename="lesson.mp4", content=b"fake video", extra_files=None, **form):
    data = {"teacher_id": str(teacher["id"]), "date": "2026-03-02", "grade": "Grade 7", "section": "B"}
    data.update(form)
    files = {"video": (filename, content, "application/octet-stream")}
    files.update(extra_files or {})
    return client.post("/upload", data=data, files=files)


def test_executable_is_rejected_before_any_write(client, teacher, upload_dir, fake_gemini):
    before = set(upload_dir.iterdir())

    response = _upload(client, teacher, filename="virus.exe")

    assert response.status_code == 400
    assert "Invalid file type for video" in response.json()["detail"]
    assert set(upload_dir.iterdir()) == before
    assert fake_gemini.calls == []


def test_bad_supporting_document_rejects_whole_request(client, teacher, upload_dir, fake_gemini):
    before = set(upload_dir.iterdir())

    response = _upload(
        client,
        teacher,
        extra_files={"lessonPlan": ("plan.txt", b"plain text", "text/plain")},
    )

    assert response.status_code == 400
    assert "lessonPlan" in response.json()["detail"]
    assert set(upload_dir.iterdir()) == before
    assert fake_gemini.calls == []


def test_missing_video_is_rejected(client, teacher):
    response = client.post("/upload", data={"teacher_id": str(teacher["id"]), "date": "2026-03-02"})

    assert response.status_code == 400
    assert response.json()["detail"] == "No video selected!"


def test_oversized_video_is_removed(client, teacher, upload_dir, monkeypatch):
    monkeypatch.setattr(settings.uploads, "max_video_bytes", 4)
    before = set(upload_dir.iterdir())

    response = _upload(client, teacher, content=b"0123456789")

    assert response.status_code == 400
    assert "413" in response.json()["detail"]
    assert set(upload_dir.iterdir()) == before


def test_missing_lecture_information_cleans_up(client, upload_dir):
    before = set(upload_dir.iterdir())

    response = client.post(
        "/upload",
        files={"video": ("lesson.mp4", b"fake video", "video/mp4")},
    )

    assert response.status_code == 400
    assert set(upload_dir.iterdir()) == before


def test_upload_creates_completed_lecture_and_report(client, teacher, fake_gemini):
    response = _upload(client, teacher, lecture_number="3", subject="Science")

    assert response.status_code == 202, response.text
    body = response.json()
    assert body["status"] == "processing"
    assert body["file"].startswith("/uploads/video-")
    lecture_id = body["lecture_id"]

    lecture = client.get(f"/lectures/{lecture_id}").json()
    assert lecture["status"] == "completed"
    assert lecture["analysis_status"] == "succeeded"
    assert lecture["pdf_report_url"] == f"/uploads/report-{lecture_id}.pdf"

    report = client.get(f"/analysis/{lecture_id}")
    assert report.status_code == 200
    data = report.json()
    header = data["analysis_data"]["cob_report"]["header"]
    assert header["facilitator"] == "Jane Doe"
    assert header["school"] == teacher["school"]
    assert teacher["school"].startswith("Green Valley School")
    assert header["grade"] == "Grade 7"
    assert data["analysis_data"]["transcription"].startswith("Good morning class")
    assert data["analysis_data"]["meta"]["used_mock"] is False
    assert data["rubric_scores"]["Concepts"] == 100
    assert data["generated_by_ai"] is True

    pdf = client.get(f"/analysis/{lecture_id}/download")
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")
    assert fake_gemini.deleted == ["files/lecture-audio"]


def test_upload_to_scheduled_lecture_reuses_it(client, teacher):
    scheduled = client.post(
        "/lectures/",
        json={"teacher_id": teacher["id"], "date": "2026-03-09", "time_slot": "09:00-09:45"},
    ).json()

    response = _upload(client, teacher, lecture_id=str(scheduled["id"]))

    assert response.status_code == 202
    assert response.json()["lecture_id"] == scheduled["id"]
    assert client.get(f"/lectures/{scheduled['id']}").json()["status"] == "completed"


def test_transcript_exhaustion_marks_analysis_failed(client, teacher, fake_gemini):
    fake_gemini.transcript = lambda model: None

    response = _upload(client, teacher)

    assert response.status_code == 202
    lecture_id = response.json()["lecture_id"]
    lecture = client.get(f"/lectures/{lecture_id}").json()
    assert lecture["status"] == "completed"
    assert lecture["analysis_status"] == "failed"
    assert "All models failed" in lecture["analysis_error"]
    assert lecture["pdf_report_url"] is None
    assert client.get(f"/analysis/{lecture_id}").status_code == 404
    assert not any(stage == "analysis" for stage, _ in fake_gemini.calls)


def test_rerun_updates_the_single_report(client, teacher, fake_gemini):
    lecture_id = _upload(client, teacher).json()["lecture_id"]
    first = client.get(f"/analysis/{lecture_id}").json()

    fake_gemini.analysis = fake_gemini.analysis.replace("82%", "91%")
    response = client.post(f"/analysis/{lecture_id}")

    assert response.status_code == 202
    second = client.get(f"/analysis/{lecture_id}").json()
    assert second["id"] == first["id"]
    assert second["analysis_data"]["cob_report"]["scores"]["overall_percentage"] == "91%"


def test_rerun_requires_a_video(client, teacher):
    scheduled = client.post(
        "/lectures/",
        json={"teacher_id": teacher["id"], "date": "2026-03-10"},
    ).json()

    response = client.post(f"/analysis/{scheduled['id']}")

    assert response.status_code == 400


def test_stored_placeholder_header_is_reconciled(client, teacher):
    lecture = client.post(
        "/lectures/",
        json={"teacher_id": teacher["id"], "date": "2026-03-12", "grade": "Grade 4", "section": "D"},
    ).json()

    async def store_legacy_report():
        async with session_scope() as session:
            legacy = {"cob_analysis": json.loads(model_report_json())}
            await save_report(session, lecture["id"], legacy)
            await session.commit()

    asyncio.run(store_legacy_report())
    stale_pdf = report_pdf_path(lecture["id"])
    stale_pdf.write_bytes(b"%PDF-stale")

    header = client.get(f"/analysis/{lecture['id']}").json()["analysis_data"]["cob_analysis"]["cob_report"]["header"]

    assert header["facilitator"] == "Jane Doe"
    assert header["grade"] == "Grade 4"
    assert header["section"] == "D"
    assert header["date"] == "2026-03-12"
    assert header["topic_blm"] == "Photosynthesis"
    assert not stale_pdf.exists()

    pdf = client.get(f"/analysis/{lecture['id']}/download")
    assert pdf.status_code == 200
    assert pdf.content != b"%PDF-stale"


def test_failed_render_on_rerun_drops_the_previous_pdf(client, teacher, fake_gemini, monkeypatch):
    lecture_id = _upload(client, teacher).json()["lecture_id"]
    pdf_path = report_pdf_path(lecture_id)
    assert pdf_path.exists()

    def broken_render(*args, **kwargs):
        raise ReportRenderError("Could not render report PDF: disk full")

    monkeypatch.setattr(flow, "render_report_pdf", broken_render)
    fake_gemini.analysis = fake_gemini.analysis.replace("82%", "91%")

    assert client.post(f"/analysis/{lecture_id}").status_code == 202
    assert client.get(f"/lectures/{lecture_id}").json()["analysis_status"] == "succeeded"
    assert not pdf_path.exists()

    pdf = client.get(f"/analysis/{lecture_id}/download")
    assert pdf.status_code == 200
    assert "91%" in PdfReader(io.BytesIO(pdf.content)).pages[0].extract_text()


def test_overlapping_runs_share_one_report(client, teacher, fake_gemini, upload_dir):
    lecture = client.post(
        "/lectures/",
        json={"teacher_id": teacher["id"], "date": "2026-03-14", "grade": "Grade 6"},
    ).json()
    video = upload_dir / f"video-overlap-{lecture['id']}.mp4"
    video.write_bytes(b"fake video")

    async def attach_video_and_run_twice():
        async with session_scope() as session:
            row = await load_lecture(session, lecture["id"])
            row.video_path = f"/uploads/{video.name}"
            await session.commit()
        return await asyncio.gather(
            run_lecture_analysis(lecture["id"], fake_gemini),
            run_lecture_analysis(lecture["id"], fake_gemini),
        )

    async def count_reports():
        async with session_scope() as session:
            return await session.scalar(
                select(func.count()).select_from(Report).where(Report.lecture_id == lecture["id"])
            )

    assert asyncio.run(attach_video_and_run_twice()) == [True, True]
    assert asyncio.run(count_reports()) == 1
    refreshed = client.get(f"/lectures/{lecture['id']}").json()
    assert refreshed["analysis_status"] == "succeeded"
    assert refreshed["analysis_error"] is None


def test_rerun_reuses_the_uploaded_supporting_documents(client, teacher, fake_gemini, tmp_path):
    plan = _docx_bytes(tmp_path, "Lesson plan: label the parts of a leaf")

    response = _upload(
        client,
        teacher,
        extra_files={"lessonPlan": ("plan.docx", plan, "application/octet-stream")},
    )
    lecture_id = response.json()["lecture_id"]
    documents = response.json()["lecture"]["supporting_documents"]
    assert documents[0] is None and documents[1] is None
    assert documents[2].startswith("/uploads/lessonPlan-")

    fake_gemini.prompts.clear()
    assert client.post(f"/analysis/{lecture_id}").status_code == 202

    assert any("label the parts of a leaf" in prompt for prompt in fake_gemini.prompts)


def test_new_upload_removes_replaced_supporting_documents(client, teacher, tmp_path, upload_dir):
    first = _upload(
        client,
        teacher,
        lecture_number="5",
        extra_files={"lessonPlan": ("plan.docx", _docx_bytes(tmp_path, "Week 1"), "application/octet-stream")},
    ).json()
    old_plan = upload_dir / first["lecture"]["supporting_documents"][2].rsplit("/", 1)[-1]
    assert old_plan.exists()

    second = _upload(client, teacher, lecture_number="5")

    assert second.json()["lecture_id"] == first["lecture_id"]
    assert second.json()["lecture"]["supporting_documents"] == [None, None, None]
    assert not old_plan.exists()


def test_report_pdf_is_served_from_the_public_uploads_mount(client, teacher):
    lecture_id = _upload(client, teacher).json()["lecture_id"]
    url = client.get(f"/lectures/{lecture_id}").json()["pdf_report_url"]
    client.app.dependency_overrides.pop(get_current_user, None)

    assert client.get(f"/analysis/{lecture_id}/download").status_code == 401
    pdf = client.get(url)
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")
