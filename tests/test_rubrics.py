"""Rubric upload, replacement and use during analysis."""

from __future__ import annotations

import asyncio

from docx import Document
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import session_scope
from app.models.rubric import Rubric
from app.pipelines.analysis.persistence import load_rubric_text


def _docx_bytes(tmp_path, text):
    document = Document()
    document.add_paragraph(text)
    path = tmp_path / "rubric.docx"
    document.save(str(path))
    return path.read_bytes()


def _upload(client, tmp_path, grade, text, filename="rubric.docx"):
    return client.post(
        "/rubrics/",
        data={"grade": grade} if grade is not None else {},
        files={"file": (filename, _docx_bytes(tmp_path, text), "application/octet-stream")},
    )


def test_grade_is_required(client, tmp_path):
    response = _upload(client, tmp_path, None, "Rubric text")

    assert response.status_code == 400
    assert response.json()["detail"] == "Grade is required"


def test_wrong_extension_is_rejected(client, tmp_path):
    response = _upload(client, tmp_path, "Grade 9 to 12", "Rubric", filename="rubric.txt")

    assert response.status_code == 400


def test_upload_replaces_previous_rubric_for_category(client, tmp_path, upload_dir):
    first = _upload(client, tmp_path, "KG 1 and KG 2", "Old kindergarten rubric")
    assert first.status_code == 201
    old_file = upload_dir / first.json()["data"]["file_path"].rsplit("/", 1)[-1]
    assert old_file.exists()

    second = _upload(client, tmp_path, "KG2", "New kindergarten rubric")

    assert second.status_code == 201
    data = second.json()["data"]
    assert data["id"] == first.json()["data"]["id"]
    assert data["grade"] == "KG 1 and KG 2"
    assert data["file_type"] == "docx"
    assert "New kindergarten rubric" in data["content"]
    assert not old_file.exists()

    listed = client.get("/rubrics/").json()["data"]
    assert [item["grade"] for item in listed].count("KG 1 and KG 2") == 1


def test_stored_rubric_is_used_for_matching_grade(client, tmp_path):
    _upload(client, tmp_path, "Grade 1 to 8", "Primary rubric: questioning technique")

    async def lookup():
        async with session_scope() as session:
            return await load_rubric_text(session, "Grade 5")

    assert "questioning technique" in asyncio.run(lookup())


def test_delete_removes_row_and_file(client, tmp_path, upload_dir):
    created = _upload(client, tmp_path, "Grade 9 to 12", "Senior rubric").json()["data"]
    stored = upload_dir / created["file_path"].rsplit("/", 1)[-1]

    response = client.delete(f"/rubrics/{created['id']}")

    assert response.status_code == 200
    assert not stored.exists()
    assert client.delete(f"/rubrics/{created['id']}").status_code == 404


def test_unreadable_rubric_is_rejected_and_keeps_the_current_one(client, tmp_path, upload_dir):
    current = _upload(client, tmp_path, "Grade 9 to 12", "Senior rubric: lab safety").json()["data"]
    before = set(upload_dir.iterdir())

    response = client.post(
        "/rubrics/",
        data={"grade": "Grade 10"},
        files={"file": ("rubric.pdf", b"this is not a pdf", "application/pdf")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Could not read text from rubric.pdf"
    assert set(upload_dir.iterdir()) == before
    listed = {item["grade"]: item for item in client.get("/rubrics/").json()["data"]}
    assert listed["Grade 9 to 12"]["file_path"] == current["file_path"]
    assert "lab safety" in listed["Grade 9 to 12"]["content"]


def test_placeholder_rubric_content_is_not_used(client):
    async def store_placeholder_and_lookup():
        async with session_scope() as session:
            rubric = await session.scalar(select(Rubric).where(Rubric.grade == "KG 1 and KG 2"))
            if rubric is None:
                rubric = Rubric(
                    grade="KG 1 and KG 2",
                    file_path="/uploads/rubric-old.pdf",
                    original_name="old-rubric.pdf",
                    file_type="pdf",
                )
                session.add(rubric)
            rubric.content = "[Error reading file old-rubric.pdf]"
            await session.commit()
            return await load_rubric_text(session, "KG1")

    assert asyncio.run(store_placeholder_and_lookup()) is None


def test_failed_commit_keeps_the_previous_rubric_file(client, tmp_path, upload_dir, monkeypatch):
    first = _upload(client, tmp_path, "Grade 1 to 8", "Primary rubric: group work").json()["data"]
    old_file = upload_dir / first["file_path"].rsplit("/", 1)[-1]
    before = set(upload_dir.iterdir())

    async def failing_commit(self):
        raise SQLAlchemyError("database is unavailable")

    with monkeypatch.context() as patched:
        patched.setattr(AsyncSession, "commit", failing_commit)
        response = _upload(client, tmp_path, "Grade 4", "Replacement rubric")

    assert response.status_code == 500
    assert old_file.exists()
    assert set(upload_dir.iterdir()) == before
    listed = {item["grade"]: item for item in client.get("/rubrics/").json()["data"]}
    assert listed["Grade 1 to 8"]["file_path"] == first["file_path"]
