"""Shared fixtures: an isolated SQLite database, upload dir and fake Gemini client."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from types import SimpleNamespace
from uuid import uuid4

# Settings are read once at import time, so the environment has to be ready
# before anything under ``app`` is imported.
_TMP_ROOT = Path(tempfile.mkdtemp(prefix="school-manager-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_ROOT / 'test.db'}"
os.environ["UPLOAD_DIRECTORY"] = str(_TMP_ROOT / "uploads")
os.environ["LOG_FILE"] = str(_TMP_ROOT / "logs" / "app.log")
os.environ["PIPELINE_LOG_FILE"] = str(_TMP_ROOT / "logs" / "analysis_pipeline.log")
os.environ["GEMINI_POLL_INTERVAL_SECONDS"] = "0"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ.pop("GEMINI_API_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.controllers.dependencies import get_current_user, get_gemini_client  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import UserRole  # noqa: E402
from app.services.gemini_client import RemoteFile  # noqa: E402


def model_report_json(**header_overrides) -> str:
    """A COB report as a model would return it, with placeholder header fields."""

    header = {
        "facilitator": "Unknown Teacher",
        "school": "Unknown School",
        "grade": "N/A",
        "section": "N/A",
        "subject": "Science",
        "date": "N/A",
        "topic_blm": "Photosynthesis",
        "duration": "40 minutes",
        "session_type": "Lecture",
    }
    header.update(header_overrides)
    return json.dumps(
        {
            "cob_report": {
                "header": header,
                "scores": {"overall_percentage": "82%", "summary": "Solid lesson."},
                "parameters": [
                    {
                        "category": "Concepts",
                        "name": "Concept clarity",
                        "score": 2,
                        "out_of": 2,
                        "comment": "Clear explanation",
                    },
                    {
                        "category": "Delivery",
                        "name": "Pace",
                        "score": 1,
                        "out_of": 2,
                        "comment": "Slightly rushed",
                    },
                ],
                "highlights": ["Good questioning"],
                "other_observations": ["Board work was neat"],
                "what_happened": ["Introduced the topic"],
            }
        }
    )


class FakeGeminiClient:
    """Records every call and answers from canned values.

    Each canned value may be a string, ``None`` (empty answer), an exception
    instance (raised), or a callable taking the model name.
    """

    def __init__(
        self,
        *,
        transcript="Good morning class. Today we study photosynthesis.",
        analysis=None,
        document='{"summary": "A lesson plan about plants"}',
        states=("ACTIVE",),
    ) -> None:
        self.transcript = transcript
        self.analysis = analysis if analysis is not None else model_report_json()
        self.document = document
        self.states = list(states)
        self.uploaded: list[Path] = []
        self.deleted: list[str] = []
        self.polls = 0
        self.calls: list[tuple[str, str]] = []
        self.prompts: list[str] = []

    async def upload_file(self, path, mime_type):
        self.uploaded.append(Path(path))
        return RemoteFile(
            name="files/lecture-audio",
            uri="https://generativelanguage.example/files/lecture-audio",
            mime_type=mime_type,
            state="PROCESSING",
        )

    async def get_file(self, name):
        self.polls += 1
        state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        return RemoteFile(
            name=name,
            uri="https://generativelanguage.example/files/lecture-audio",
            mime_type="audio/mp3",
            state=state,
        )

    async def delete_file(self, name):
        self.deleted.append(name)

    async def generate(self, *, model, prompt, file=None, response_mime_type=None):
        if file is not None:
            stage, value = "transcription", self.transcript
        elif response_mime_type == "application/json":
            stage, value = "analysis", self.analysis
        else:
            stage, value = "document", self.document
        self.calls.append((stage, model))
        self.prompts.append(prompt)

        if callable(value):
            value = value(model)
        if isinstance(value, Exception):
            raise value
        return value


def _fake_current_user():
    return SimpleNamespace(id=1, name="Test Admin", role=UserRole.SUPER_ADMIN)


@pytest.fixture
def fake_gemini() -> FakeGeminiClient:
    return FakeGeminiClient()


@pytest.fixture
def client(fake_gemini):
    """Authenticated test client wired to the fake Gemini client."""

    app.dependency_overrides[get_current_user] = _fake_current_user
    app.dependency_overrides[get_gemini_client] = lambda: fake_gemini
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def upload_dir() -> Path:
    path = Path(os.environ["UPLOAD_DIRECTORY"])
    path.mkdir(parents=True, exist_ok=True)
    return path


def unique(prefix: str) -> str:
    return f"{prefix} {uuid4().hex[:8]}"


def create_school(client: TestClient, **overrides) -> dict:
    payload = {
        "name": unique("Green Valley School"),
        "email": f"office-{uuid4().hex[:8]}@greenvalley.edu",
        "address": "12 Park Road",
        "principal": "Dr. Rao",
    }
    payload.update(overrides)
    response = client.post("/schools/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def create_teacher(client: TestClient, school_id: int, **overrides) -> dict:
    payload = {
        "name": "Jane Doe",
        "email": f"jane-{uuid4().hex[:8]}@greenvalley.edu",
        "school_id": school_id,
        "subjects": ["Science"],
        "experience": 6,
    }
    payload.update(overrides)
    response = client.post("/teachers/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()
