"""Ingestion and query orchestration over an injected sensor store."""

from __future__ import annotations

import asyncio
import logging
import time
from functools import lru_cache
from typing import Any, Callable, Dict, List, Mapping, Optional

from starlette.concurrency import run_in_threadpool

from app.schemas import HistoryEntry, SensorReading
from datastore.base import SensorStore
from datastore.firebase_store import FirebaseRealtimeStore
from datastore.mock_realtime_db import build_default_database
from errors import InvalidSubmissionError, StoreError
from logging_config import reading_extra
from services.normalization import (
    build_history,
    build_reading,
    normalize_reading,
    parse_submission,
)
from settings import get_settings

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 20


def now_ms() -> int:
    return int(time.time() * 1000)


class ReadingService:
    """Validates device submissions and serves latest/history reads."""

    def __init__(
        self,
        store: SensorStore,
        clock: Callable[[], int] = now_ms,
        history_window: int = HISTORY_WINDOW,
    ) -> None:
        self.store = store
        self.clock = clock
        self.history_window = history_window

    @property
    def connected(self) -> bool:
        return self.store.connected

    async def submit(self, body: Any) -> SensorReading:
        """Validate ``body`` and write it to the latest slot and history.

        Both writes are started together and awaited until each has settled.
        The first failure is raised as ``StoreError``; nothing is retried.
        """
        try:
            submission = parse_submission(body)
        except InvalidSubmissionError as exc:
            context = reading_extra(body) if isinstance(body, Mapping) else {}
            logger.warning(
                "Rejected sensor data: %s",
                exc,
                extra={**context, "missing_fields": ",".join(exc.missing_fields) or None},
            )
            raise
        reading = build_reading(submission, now_ms=self.clock())
        payload = reading.to_store()
        logger.info("Sensor data received", extra=reading_extra(payload))

        outcomes = await asyncio.gather(
            run_in_threadpool(self.store.set_latest, payload),
            run_in_threadpool(self.store.append_history, payload),
            return_exceptions=True,
        )
        failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if failures:
            error = failures[0]
            if isinstance(error, StoreError):
                raise error
            raise StoreError(f"Failed to store sensor data: {error}") from error

        logger.info("Sensor data stored", extra={"history_key": outcomes[1]})
        return reading

    async def latest(self) -> Optional[SensorReading]:
        """Return the normalized latest reading, or ``None`` before any write."""
        raw = await run_in_threadpool(self.store.get_latest)
        if raw is None:
            return None
        return normalize_reading(raw, now_ms=self.clock())

    async def history(self) -> List[HistoryEntry]:
        entries = await run_in_threadpool(self.store.query_last, self.history_window)
        history = build_history(entries, now_ms=self.clock())
        logger.debug("Serving history window", extra={"entry_count": len(history)})
        return history

    async def probe_store(self) -> Optional[Dict[str, Any]]:
        """Write a marker to the probe path and read it back."""
        marker = {"test": "connection", "timestamp": self.clock()}
        return await run_in_threadpool(self.store.check_connection, marker)

    def shutdown(self) -> None:
        self.store.close()


def build_default_store() -> SensorStore:
    """Create the store selected by ``STORE_BACKEND``.

    Raises ``ConfigurationError`` or ``StoreError`` when the backend cannot be
    reached; callers treat either as fatal.
    """
    settings = get_settings()
    logger.info(
        "Initializing sensor store",
        extra={"store_backend": settings.store_backend, "store_path": settings.store_root_path},
    )
    if settings.store_backend == "memory":
        return build_default_database()
    return FirebaseRealtimeStore.connect(settings)


@lru_cache
def build_default_service() -> ReadingService:
    """Factory that wires the reading service with the configured store."""
    return ReadingService(store=build_default_store())
