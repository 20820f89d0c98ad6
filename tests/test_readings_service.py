import asyncio
import logging
import threading

import pytest

from datastore.mock_realtime_db import MockRealtimeDatabase
from errors import InvalidSubmissionError, StoreError
from services.readings import ReadingService

NOW = 1_700_000_000_000
VALID_BODY = {"temperature": 25, "levelPercent": 80, "ntu": 5}


class RecordingDatabase(MockRealtimeDatabase):
    """Counts write attempts and optionally fails one side of the dual write."""

    def __init__(self, fail_latest: bool = False, fail_history: Exception | None = None) -> None:
        super().__init__()
        self.fail_latest = fail_latest
        self.fail_history = fail_history
        self.latest_calls = 0
        self.history_calls = 0

    def set_latest(self, payload):
        self.latest_calls += 1
        if self.fail_latest:
            raise StoreError("latest write rejected")
        super().set_latest(payload)

    def append_history(self, payload):
        self.history_calls += 1
        if self.fail_history is not None:
            raise self.fail_history
        return super().append_history(payload)


def _service(store) -> ReadingService:
    return ReadingService(store=store, clock=lambda: NOW)


def test_submit_writes_both_projections() -> None:
    store = RecordingDatabase()

    reading = asyncio.run(_service(store).submit(dict(VALID_BODY)))

    assert reading.timestamp == NOW
    assert store.get_latest() == reading.to_store()
    [entry] = store.query_last(20)
    assert entry.payload == reading.to_store()


def test_submit_issues_both_writes_concurrently() -> None:
    barrier = threading.Barrier(2)

    class CoordinatedDatabase(MockRealtimeDatabase):
        def set_latest(self, payload):
            barrier.wait(timeout=2.0)
            super().set_latest(payload)

        def append_history(self, payload):
            barrier.wait(timeout=2.0)
            return super().append_history(payload)

    store = CoordinatedDatabase()

    asyncio.run(_service(store).submit(dict(VALID_BODY)))

    assert store.get_latest() is not None
    assert len(store.query_last(20)) == 1


def test_failed_history_write_is_not_retried_or_compensated() -> None:
    store = RecordingDatabase(fail_history=StoreError("push rejected"))

    with pytest.raises(StoreError, match="push rejected"):
        asyncio.run(_service(store).submit(dict(VALID_BODY)))

    assert store.history_calls == 1
    assert store.latest_calls == 1
    # The latest overwrite already settled; nothing rolls it back.
    assert store.get_latest() is not None


def test_failed_latest_write_still_waits_for_history() -> None:
    store = RecordingDatabase(fail_latest=True)

    with pytest.raises(StoreError, match="latest write rejected"):
        asyncio.run(_service(store).submit(dict(VALID_BODY)))

    assert store.history_calls == 1
    assert len(store.query_last(20)) == 1


def test_unexpected_store_exception_is_wrapped() -> None:
    store = RecordingDatabase(fail_history=OSError("disk full"))

    with pytest.raises(StoreError, match="disk full"):
        asyncio.run(_service(store).submit(dict(VALID_BODY)))


def test_invalid_submission_touches_nothing() -> None:
    store = RecordingDatabase()

    with pytest.raises(InvalidSubmissionError):
        asyncio.run(_service(store).submit({"temperature": 25}))

    assert store.latest_calls == 0
    assert store.history_calls == 0


def test_latest_returns_none_before_first_write() -> None:
    assert asyncio.run(_service(MockRealtimeDatabase()).latest()) is None


def test_history_window_is_limited() -> None:
    store = MockRealtimeDatabase()
    for index in range(8):
        store.append_history({"temperature": index, "timestamp": index})
    service = ReadingService(store=store, clock=lambda: NOW, history_window=5)

    history = asyncio.run(service.history())

    assert [entry.temperature for entry in history] == [3, 4, 5, 6, 7]


def test_submit_logs_received_payload(caplog) -> None:
    store = RecordingDatabase()

    with caplog.at_level(logging.INFO, logger="services.readings"):
        asyncio.run(_service(store).submit(dict(VALID_BODY, turbStatus="KERUH")))

    records = [record for record in caplog.records if record.name == "services.readings"]
    assert any(record.getMessage() == "Sensor data received" for record in records)
    assert any(getattr(record, "turb_status", None) == "KERUH" for record in records)
    assert any(getattr(record, "history_key", None) for record in records)


def test_rejected_submission_logs_missing_fields(caplog) -> None:
    store = RecordingDatabase()

    with caplog.at_level(logging.WARNING, logger="services.readings"):
        with pytest.raises(InvalidSubmissionError):
            asyncio.run(_service(store).submit({"temperature": 25, "levelStatus": "NORMAL"}))

    [record] = [record for record in caplog.records if record.name == "services.readings"]
    assert record.levelno == logging.WARNING
    assert "Rejected sensor data" in record.getMessage()
    assert record.missing_fields == "levelPercent,ntu"
    assert record.temperature == 25
    assert record.level_status == "NORMAL"


def test_connected_reflects_store_state() -> None:
    class ClosableDatabase(MockRealtimeDatabase):
        connected = True

        def close(self) -> None:
            self.connected = False

    service = _service(ClosableDatabase())
    assert service.connected is True

    service.shutdown()

    assert service.connected is False
