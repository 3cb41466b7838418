"""End-to-end scenario: Excel exports in, JSON summary out, via the CLI runner."""
from __future__ import annotations

import json
from datetime import datetime

from openpyxl import Workbook

from scripts import run_report


def _write_workbook(path, rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    workbook.save(path)
    return path


def _participant_rows():
    return [
        ["Enrollment listing"],
        [],
        ["Site Name", "Randomization Number", "Visit Name", "Actual Date", "Age"],
        ["Mirpur", "R001", "V1", datetime(2024, 1, 1), "1Y 8M"],
        ["Mirpur", "R001", "V3", datetime(2024, 2, 1), None],
        ["Tongi", "R002", "V1", "10.01.2024", "9M"],
    ]


def _event_rows():
    return [
        ["Rand# ID", "Culture No", "Collection Date", "Result", "Shigella Strain", "RT-PCR result", "Episode ID", "Place"],
        ["R001", 101, datetime(2024, 1, 15), "Positive", "S. flexneri 2a", "Detected", "E007", "Mirpur"],
        ["R001", "RS-102", datetime(2024, 1, 16), "Negative", None, None, "E007 (Day-2)", "Mirpur"],
        ["R001", 103, datetime(2024, 3, 3), "Positive", "S. sonnei", "Positive", "E008", "Mirpur"],
        ["R777", 104, datetime(2024, 1, 20), "Negative", None, "Negative", "E009", "Tongi"],
        [None, "Total", None, 4, None, None, None, None],
    ]


def test_cli_generates_summary_json(tmp_path):
    participants = _write_workbook(tmp_path / "participants.xlsx", _participant_rows())
    events = _write_workbook(tmp_path / "events.xlsx", _event_rows())
    report_path = tmp_path / "artifacts" / "summary.json"
    log_path = tmp_path / "artifacts" / "run.jsonl"

    exit_code = run_report.main(
        [str(participants), str(events), "--report-json", str(report_path), "--log", str(log_path)]
    )

    assert exit_code == 0
    payload = json.loads(report_path.read_text(encoding="utf-8"))
    mirpur = next(site for site in payload["sites"] if site["siteName"] == "Mirpur")
    assert mirpur["enrollment"] == 1
    assert mirpur["totalDiarrhealEvents"] == 2
    assert mirpur["after1stDoseCulturePositive"] == 1
    assert mirpur["after30Days2ndDoseCulturePositive"] == 1
    assert payload["unmappedEvents"] == 1
    assert payload["totals"]["totalDiarrhealEvents"] == 3
    assert payload["recurrentCases"][0]["participantId"] == "R001"

    log_lines = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert any(line["message"].startswith("Mirpur:") for line in log_lines)


def test_cli_reports_missing_headers(tmp_path):
    participants = _write_workbook(tmp_path / "participants.xlsx", [["Site Name", "Visit Name"], ["Mirpur", "V1"]])
    events = _write_workbook(tmp_path / "events.xlsx", _event_rows())
    log_path = tmp_path / "run.jsonl"

    exit_code = run_report.main([str(participants), str(events), "--log", str(log_path)])

    assert exit_code == 2
    errors = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    aborted = [line for line in errors if line["level"] == "ERROR"]
    assert aborted and aborted[0]["source"] == "participant file"


def test_cli_rejects_malformed_site_range(tmp_path):
    exit_code = run_report.main(["a.csv", "b.csv", "--site-range", "oops", "--log", str(tmp_path / "run.jsonl")])
    assert exit_code == 2
