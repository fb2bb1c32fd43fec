"""Metadata reconciliation of stored report headers."""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace

from app.pipelines.analysis import (
    LectureMetadata,
    lecture_metadata,
    needs_patching,
    reconcile_header,
)

COMPLETE_HEADER = {
    "facilitator": "Jane Doe",
    "school": "Green Valley School",
    "grade": "Grade 7",
    "section": "B",
    "date": "2026-03-02",
    "subject": "Science",
}

METADATA = LectureMetadata(
    facilitator="Priya Nair",
    school="Hillside Academy",
    grade="Grade 8",
    section="A",
    subject="Maths",
    date="2026-03-05",
)


def _lecture(*, teacher_school="Hillside Academy", class_school="Riverside School", grade=None):
    teacher = SimpleNamespace(
        user=SimpleNamespace(name="Priya Nair"),
        school=SimpleNamespace(name=teacher_school) if teacher_school else None,
    )
    school_class = SimpleNamespace(
        name="Class 8",
        section="C",
        school=SimpleNamespace(name=class_school),
    )
    return SimpleNamespace(
        id=4,
        teacher=teacher,
        school_class=school_class,
        grade=grade,
        section=None,
        subject=None,
        date=date(2026, 3, 5),
    )


def test_complete_header_is_left_alone():
    assert not needs_patching(COMPLETE_HEADER)

    patched, changed = reconcile_header(COMPLETE_HEADER, METADATA)

    assert not changed
    assert patched == COMPLETE_HEADER


def test_placeholders_are_filled_and_real_values_kept():
    header = dict(COMPLETE_HEADER, school="Unknown School", facilitator="Name", section=None)
    assert needs_patching(header)

    patched, changed = reconcile_header(header, METADATA)

    assert changed
    assert patched["school"] == "Hillside Academy"
    assert patched["facilitator"] == "Priya Nair"
    assert patched["section"] == "A"
    assert patched["grade"] == "Grade 7"
    assert patched["subject"] == "Science"


def test_reconciling_twice_changes_nothing_the_second_time():
    header = {"school": "N/A"}

    once, changed_once = reconcile_header(header, METADATA)
    twice, changed_twice = reconcile_header(once, METADATA)

    assert changed_once
    assert not changed_twice
    assert once == twice


def test_missing_header_needs_patching():
    assert needs_patching(None)
    assert needs_patching({})


def test_teacher_school_wins_over_class_school():
    metadata = lecture_metadata(_lecture())

    assert metadata.school == "Hillside Academy"
    assert metadata.facilitator == "Priya Nair"
    assert metadata.grade == "Class 8"
    assert metadata.section == "C"
    assert metadata.subject == "General"
    assert metadata.date == "2026-03-05"


def test_class_school_used_when_teacher_has_none():
    metadata = lecture_metadata(_lecture(teacher_school=None, grade="Grade 8"))

    assert metadata.school == "Riverside School"
    assert metadata.grade == "Grade 8"
