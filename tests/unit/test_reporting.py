import json
import logging
from datetime import date

from trial_summary.aggregation.aggregator import SummaryAggregator
from trial_summary.errors import EmptyDatasetError, MissingHeaderError, UnreadableFileError
from trial_summary.models import Participant
from trial_summary.observability.logger import JsonFormatter
from trial_summary.observability.reporting import format_percent, persist_summary, summary_to_dict


def _summary():
    aggregator = SummaryAggregator()
    aggregator.add_participants([Participant("R001", "Mirpur", dose1_date=date(2024, 1, 1))])
    return aggregator.finalize()


def test_summary_dict_uses_output_contract_keys():
    payload = summary_to_dict(_summary())
    assert set(payload) == {
        "sites",
        "totals",
        "strains",
        "pcrSites",
        "pcrTotals",
        "ageDistribution",
        "detailedEvents",
        "recurrentCases",
        "unmappedEvents",
        "concordance",
        "specimenYield",
    }
    mirpur = next(site for site in payload["sites"] if site["siteName"] == "Mirpur")
    assert mirpur["enrollment"] == 1
    assert "after30Days2ndDoseCulturePositive" in mirpur
    assert "after30DaysPositive" in payload["pcrTotals"]
    assert payload["concordance"]["culturePosPcrPos"] == 0


def test_persist_summary_writes_json(tmp_path):
    target = tmp_path / "out" / "summary.json"
    persist_summary(_summary(), target)
    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["totals"]["siteName"] == "Total"
    assert payload["unmappedEvents"] == 0


def test_format_percent():
    assert format_percent(1, 3) == "33.33%"
    assert format_percent(5, 0) == "0.00%"


def test_json_formatter_includes_context_fields():
    record = logging.LogRecord("trial_summary", logging.INFO, __file__, 1, "Events extracted: %d", (4,), None)
    record.source = "events file"
    record.row = 12
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "Events extracted: 4"
    assert payload["source"] == "events file"
    assert payload["row"] == 12
    assert "participant_id" not in payload


def test_error_messages_name_the_file():
    assert "events file" in str(EmptyDatasetError("events file"))
    assert "participant file" in str(UnreadableFileError("participant file", "'x.xlsx' appears to be empty"))
    error = MissingHeaderError("events file", [["Result"]], 50)
    assert "'Result'" in str(error) and "first 50 rows" in str(error)
