"""Unit tests for submission validation and field defaulting."""

from __future__ import annotations

import pytest

from app.schemas import NO_DATA_STATUS, UNDETECTED_STATUS
from errors import InvalidSubmissionError
from models.records import StoredEntry
from services.normalization import (
    build_history,
    build_reading,
    normalize_reading,
    parse_submission,
    placeholder_reading,
)

NOW = 1_700_000_000_000


def test_parse_submission_accepts_null_and_falsy_values() -> None:
    submission = parse_submission({"temperature": None, "levelPercent": 0, "ntu": False})

    assert submission.temperature is None
    assert submission.level_percent == 0
    assert submission.ntu is False
    assert submission.level_status is None


def test_parse_submission_reports_every_missing_field() -> None:
    with pytest.raises(InvalidSubmissionError) as excinfo:
        parse_submission({"ntu": 3})

    assert excinfo.value.missing_fields == ("temperature", "levelPercent")
    assert "temperature" in str(excinfo.value)
    assert "levelPercent" in str(excinfo.value)


@pytest.mark.parametrize("body", [None, [], "reading", 12])
def test_parse_submission_rejects_non_objects(body) -> None:
    with pytest.raises(InvalidSubmissionError):
        parse_submission(body)


def test_build_reading_uses_server_time_and_drops_unknown_fields() -> None:
    submission = parse_submission(
        {
            "temperature": 25,
            "levelPercent": 80,
            "ntu": 5,
            "levelStatus": "",
            "turbStatus": "KERUH",
            "timestamp": 1,
            "battery": 3.7,
        }
    )

    reading = build_reading(submission, now_ms=NOW)

    assert reading.to_store() == {
        "temperature": 25,
        "levelPercent": 80,
        "ntu": 5,
        "levelStatus": UNDETECTED_STATUS,
        "turbStatus": "KERUH",
        "timestamp": NOW,
    }


def test_normalize_reading_fills_missing_fields() -> None:
    reading = normalize_reading({"temperature": 24.5}, now_ms=NOW)

    assert reading.temperature == 24.5
    assert reading.level_percent == 0
    assert reading.ntu == 0
    assert reading.level_status == UNDETECTED_STATUS
    assert reading.turb_status == UNDETECTED_STATUS
    assert reading.timestamp == NOW


def test_normalize_reading_keeps_genuine_zero_readings() -> None:
    reading = normalize_reading(
        {"temperature": 0, "levelPercent": 0, "ntu": 0, "timestamp": 42}, now_ms=NOW
    )

    assert (reading.temperature, reading.level_percent, reading.ntu) == (0, 0, 0)
    assert reading.timestamp == 42


def test_placeholder_reading_uses_no_data_sentinel() -> None:
    body = placeholder_reading(now_ms=NOW).model_dump(by_alias=True)

    assert body["temperature"] == 0
    assert body["levelPercent"] == 0
    assert body["ntu"] == 0
    assert body["levelStatus"] == NO_DATA_STATUS
    assert body["turbStatus"] == NO_DATA_STATUS
    assert body["timestamp"] == NOW


def test_build_history_sorts_stably_by_timestamp() -> None:
    entries = [
        StoredEntry(key="c", payload={"temperature": 3, "timestamp": 200}),
        StoredEntry(key="a", payload={"temperature": 1, "timestamp": 100}),
        StoredEntry(key="b", payload={"temperature": 2, "timestamp": 200}),
    ]

    history = build_history(entries, now_ms=NOW)

    assert [entry.id for entry in history] == ["a", "c", "b"]
    assert [entry.timestamp for entry in history] == [100, 200, 200]
