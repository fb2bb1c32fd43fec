"""Health, metrics, dashboard and request-log persistence."""

from __future__ import annotations

import asyncio
from uuid import uuid4

from conftest import create_school, create_teacher
from sqlalchemy import select

from app.config.settings import settings
from app.controllers.dependencies import get_current_user
from app.database import session_scope
from app.main import app
from app.models.log import RequestLog


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["gemini_configured"] is False


def test_metrics_expose_request_and_upload_series(client):
    client.get("/health")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert 'http_requests_total{method="GET",route="/health",status="200"}' in response.text
    assert "app_analysis_runs_total" in response.text
    assert "app_upload_bytes_total" in response.text


def test_dashboard_counts(client):
    before = client.get("/dashboard/stats").json()
    school = create_school(client)
    create_teacher(client, school["id"])

    after = client.get("/dashboard/stats").json()

    assert after["schools"] == before["schools"] + 1
    assert after["teachers"] == before["teachers"] + 1
    assert after["users"] == before["users"] + 1


async def _logs_for(route: str) -> list[RequestLog]:
    async with session_scope() as session:
        result = await session.execute(
            select(RequestLog).where(RequestLog.route == route).order_by(RequestLog.id)
        )
        return list(result.scalars())


def test_request_logs_record_route_and_session_role(client, monkeypatch):
    email = f"audit-{uuid4().hex[:8]}@school.edu"
    client.post(
        "/users/",
        json={"name": "Audit", "email": email, "password": "secret-pass", "role": "school_admin"},
    )
    token = client.post(
        "/auth/login", json={"email": email, "password": "secret-pass"}
    ).json()["accessToken"]
    app.dependency_overrides.pop(get_current_user, None)
    monkeypatch.setattr(settings, "persist_request_logs", True)

    client.get("/users/me", headers={"Authorization": f"Bearer {token}", "User-Agent": "pytest"})

    logs = asyncio.run(_logs_for("/users/me"))
    assert logs, "expected a persisted request log"
    entry = logs[-1]
    assert entry.status_code == 200
    assert entry.user_agent == "pytest"
    assert entry.session_role == "school_admin"
    assert entry.session_user_id is not None
    assert token not in (entry.session_id or "")
