from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from models.records import StoredEntry

LATEST_NODE = "DataTerbaru"
HISTORY_NODE = "History"
PROBE_PATH = "test"


class SensorStore(Protocol):
    """Operations the reading service needs from a document store.

    Implementations raise ``errors.StoreError`` for any backend failure.
    """

    backend: str

    @property
    def connected(self) -> bool: ...

    def get_latest(self) -> Optional[Dict[str, Any]]: ...

    def set_latest(self, payload: Dict[str, Any]) -> None: ...

    def append_history(self, payload: Dict[str, Any]) -> str: ...

    def query_last(self, limit: int) -> List[StoredEntry]: ...

    def check_connection(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    def close(self) -> None: ...
