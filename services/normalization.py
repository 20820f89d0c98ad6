"""Pure helpers that validate submissions and apply per-field defaults."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from pydantic import ValidationError

from app.schemas import (
    HistoryEntry,
    LatestPlaceholder,
    SensorReading,
    SensorSubmission,
    UNDETECTED_STATUS,
)
from errors import InvalidSubmissionError
from models.records import StoredEntry

REQUIRED_FIELDS = ("temperature", "levelPercent", "ntu")
_NUMERIC_FIELDS = REQUIRED_FIELDS
_STATUS_FIELDS = ("levelStatus", "turbStatus")


def parse_submission(body: Any) -> SensorSubmission:
    """Validate a decoded request body.

    Only absence fails: ``0``, ``false`` and ``null`` all count as present.
    """
    if not isinstance(body, Mapping):
        raise InvalidSubmissionError("Sensor data must be a JSON object.")

    try:
        return SensorSubmission.model_validate(body)
    except ValidationError as exc:
        missing = [
            str(error["loc"][0])
            for error in exc.errors()
            if error["type"] == "missing" and error["loc"]
        ]
        if not missing:
            raise InvalidSubmissionError("Sensor data is malformed.") from exc
        raise InvalidSubmissionError(
            f"Incomplete sensor data; missing: {', '.join(missing)}",
            missing_fields=missing,
        ) from exc


def _status_or_sentinel(value: Any) -> Any:
    return value if value else UNDETECTED_STATUS


def _timestamp_or_default(value: Any, default: int) -> int:
    if isinstance(value, bool) or value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_fields(raw: Mapping[str, Any], now_ms: int) -> dict[str, Any]:
    """Apply defaults to a wire-format mapping, returning wire-format keys."""
    fields: dict[str, Any] = {}
    for name in _NUMERIC_FIELDS:
        value = raw.get(name)
        fields[name] = 0 if value is None else value
    for name in _STATUS_FIELDS:
        fields[name] = _status_or_sentinel(raw.get(name))
    fields["timestamp"] = _timestamp_or_default(raw.get("timestamp"), now_ms)
    return fields


def normalize_reading(raw: Mapping[str, Any], now_ms: int) -> SensorReading:
    return SensorReading.model_validate(normalize_fields(raw, now_ms))


def build_reading(submission: SensorSubmission, now_ms: int) -> SensorReading:
    """Turn an accepted submission into the record written to the store."""
    raw = submission.model_dump(by_alias=True)
    # The server clock is authoritative for write time.
    raw["timestamp"] = now_ms
    return normalize_reading(raw, now_ms)


def placeholder_reading(now_ms: int) -> LatestPlaceholder:
    return LatestPlaceholder(timestamp=now_ms)


def build_history(entries: Iterable[StoredEntry], now_ms: int) -> List[HistoryEntry]:
    """Normalize store entries and order them by ascending timestamp.

    ``sorted`` is stable, so entries sharing a timestamp keep store order.
    """
    history = [
        HistoryEntry.model_validate({"id": entry.key, **normalize_fields(entry.payload, now_ms)})
        for entry in entries
    ]
    return sorted(history, key=lambda item: item.timestamp)
