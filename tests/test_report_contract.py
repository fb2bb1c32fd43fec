"""Parsing and validation of model-produced COB reports."""

from __future__ import annotations

import json

import pytest

from app.services.report_contract import (
    ReportContractError,
    clean_json_payload,
    is_placeholder,
    parse_report_json,
    parse_stored_report,
)

from conftest import model_report_json


def test_markdown_fences_are_stripped():
    payload = "```json\n" + model_report_json() + "\n```"

    assert json.loads(clean_json_payload(payload))["cob_report"]["scores"]["overall_percentage"] == "82%"


def test_trailing_commas_are_repaired_once():
    payload = '{"cob_report": {"parameters": [{"name": "Pace", "score": 1, "out_of": 2,},],}}'

    report = parse_report_json(payload)

    assert report.cob_report.parameters[0].name == "Pace"
    assert report.cob_report.header.facilitator is None


def test_missing_parameters_fail_validation():
    with pytest.raises(ReportContractError):
        parse_report_json('{"cob_report": {"header": {"school": "X"}}}')


def test_non_json_fails():
    with pytest.raises(ReportContractError):
        parse_report_json("The lesson went well overall.")


def test_legacy_nesting_is_accepted():
    legacy = {"cob_analysis": json.loads(model_report_json(facilitator="Mr. Khan"))}

    report = parse_report_json(json.dumps(legacy))

    assert report.cob_report.header.facilitator == "Mr. Khan"


def test_numeric_header_values_are_coerced_to_text():
    report = parse_report_json(model_report_json(grade=7, section="B"))

    assert report.cob_report.header.grade == "7"


def test_stored_report_reader_accepts_strings_and_dicts():
    as_text = parse_stored_report(model_report_json())
    as_dict = parse_stored_report(json.loads(model_report_json()))

    assert as_text["header"]["topic_blm"] == "Photosynthesis"
    assert as_dict == as_text


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, True),
        ("", True),
        ("N/A", True),
        ("Unknown School", True),
        ("Unknown Teacher", True),
        ("Name", True),
        ("Jane Doe", False),
    ],
)
def test_placeholder_detection(value, expected):
    assert is_placeholder(value) is expected
