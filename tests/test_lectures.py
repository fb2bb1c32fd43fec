"""Lecture scheduling, filters and status reporting."""

from __future__ import annotations

from conftest import create_school, create_teacher


def _schedule(client, teacher_id, **overrides):
    payload = {
        "teacher_id": teacher_id,
        "date": "2026-05-04",
        "time_slot": "10:00-10:45",
        "grade": "Grade 6",
        "section": "A",
        "subject": "English",
    }
    payload.update(overrides)
    return client.post("/lectures/", json=payload)


def test_schedule_lecture(client):
    school = create_school(client)
    teacher = create_teacher(client, school["id"])
    school_class = client.post(
        f"/schools/{school['id']}/classes", json={"name": "Class 6", "section": "A"}
    ).json()

    response = _schedule(client, teacher["id"], class_id=school_class["id"], lecture_number=2)

    assert response.status_code == 201
    lecture = response.json()
    assert lecture["status"] == "scheduled"
    assert lecture["analysis_status"] == "pending"
    assert lecture["teacher_name"] == "Jane Doe"
    assert lecture["class_name"] == "Class 6 A"
    assert lecture["pdf_report_url"] is None


def test_same_slot_twice_is_rejected(client):
    school = create_school(client)
    teacher = create_teacher(client, school["id"])

    assert _schedule(client, teacher["id"]).status_code == 201
    response = _schedule(client, teacher["id"], subject="Maths")

    assert response.status_code == 400
    assert "time slot" in response.json()["detail"]
    assert _schedule(client, teacher["id"], time_slot="11:00-11:45").status_code == 201


def test_unknown_teacher_or_class_is_404(client):
    school = create_school(client)
    teacher = create_teacher(client, school["id"])

    assert _schedule(client, 999999).status_code == 404
    assert _schedule(client, teacher["id"], class_id=999999).status_code == 404


def test_list_filters_and_newest_first(client):
    school = create_school(client)
    teacher = create_teacher(client, school["id"])
    other = create_teacher(client, school["id"], name="Ravi Kumar")
    first = _schedule(client, teacher["id"], date="2026-05-11").json()
    second = _schedule(client, teacher["id"], date="2026-05-12").json()
    _schedule(client, other["id"], date="2026-05-11")

    by_teacher = client.get("/lectures/", params={"teacher_id": teacher["id"]}).json()
    by_date = client.get(
        "/lectures/", params={"teacher_id": teacher["id"], "date": "2026-05-11"}
    ).json()

    assert [item["id"] for item in by_teacher] == [second["id"], first["id"]]
    assert [item["id"] for item in by_date] == [first["id"]]


def test_unknown_lecture_is_404(client):
    assert client.get("/lectures/999999").status_code == 404
    assert client.get("/analysis/999999").status_code == 404
