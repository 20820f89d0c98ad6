from __future__ import annotations
import copy
import json
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from datastore.base import HISTORY_NODE, LATEST_NODE, PROBE_PATH
from datastore.push_ids import PushIdGenerator
from models.records import StoredEntry
from settings import get_settings


class MockRealtimeDatabase:
    """In-process stand-in for the Realtime Database sensor namespace."""

    backend = "memory"
    # In-process state is always reachable.
    connected = True

    def __init__(
        self,
        root: str = "Tambak",
        persistence_path: Optional[Path] = None,
        push_ids: Optional[PushIdGenerator] = None,
    ) -> None:
        self.root = root
        self._latest: Optional[Dict[str, Any]] = None
        self._history: Dict[str, Dict[str, Any]] = {}
        self._probe: Optional[Dict[str, Any]] = None
        self.persistence_path = persistence_path
        self._push_ids = push_ids or PushIdGenerator()
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    @property
    def latest_path(self) -> str:
        return f"{self.root}/{LATEST_NODE}"

    @property
    def history_path(self) -> str:
        return f"{self.root}/{HISTORY_NODE}"

    def get_latest(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._latest)

    def set_latest(self, payload: Dict[str, Any]) -> None:
        with self._lock:
            self._latest = copy.deepcopy(payload)
            self._persist()

    def append_history(self, payload: Dict[str, Any]) -> str:
        with self._lock:
            key = self._push_ids.next_id()
            self._history[key] = copy.deepcopy(payload)
            self._persist()
            return key

    def query_last(self, limit: int) -> List[StoredEntry]:
        """Return the ``limit`` entries with the greatest keys, in key order."""
        if limit <= 0:
            return []
        with self._lock:
            keys = sorted(self._history)[-limit:]
            return [StoredEntry(key=key, payload=copy.deepcopy(self._history[key])) for key in keys]

    def check_connection(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            self._probe = copy.deepcopy(payload)
            self._persist()
            return copy.deepcopy(self._probe)

    def close(self) -> None:
        return None

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            self.root: {
                LATEST_NODE: self._latest,
                HISTORY_NODE: self._history,
            },
            PROBE_PATH: self._probe,
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        namespace = data.get(self.root) or {}
        self._latest = namespace.get(LATEST_NODE)
        self._history = dict(namespace.get(HISTORY_NODE) or {})
        self._probe = data.get(PROBE_PATH)


@lru_cache
def build_default_database(
    root: Optional[str] = None,
    path: Optional[str] = None,
) -> MockRealtimeDatabase:
    settings = get_settings()
    store_root = settings.store_root_path if root is None else root
    store_path = settings.memory_store_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return MockRealtimeDatabase(root=store_root, persistence_path=persistence)
