"""Realtime Database adapter built on ``firebase-admin``."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import firebase_admin
from firebase_admin import credentials, db
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError

from datastore.base import HISTORY_NODE, LATEST_NODE, PROBE_PATH
from errors import ConfigurationError, StoreError
from models.records import StoredEntry
from settings import Settings

logger = logging.getLogger(__name__)

_APP_NAME = "tambak-monitor"
_T = TypeVar("_T")


def _call(operation: str, path: str, func: Callable[[], _T]) -> _T:
    try:
        return func()
    except (FirebaseError, GoogleAuthError, ValueError) as exc:
        logger.error(
            "Realtime Database %s failed",
            operation,
            extra={"store_path": path, "reason": str(exc)},
        )
        raise StoreError(f"Realtime Database {operation} at {path!r} failed: {exc}") from exc


class FirebaseRealtimeStore:
    """Latest slot and history collection under one Realtime Database node."""

    backend = "firebase"

    def __init__(
        self,
        latest_ref: db.Reference,
        history_ref: db.Reference,
        probe_ref: db.Reference,
        app: Optional[firebase_admin.App] = None,
    ) -> None:
        self._latest = latest_ref
        self._history = history_ref
        self._probe = probe_ref
        self._app = app

    @property
    def connected(self) -> bool:
        """True while the admin app is initialized; ``close`` clears it."""
        return self._app is not None

    @classmethod
    def connect(cls, settings: Settings) -> "FirebaseRealtimeStore":
        """Initialize the admin app from settings and verify the database answers."""
        firebase = settings.firebase
        info = firebase.credentials_info()
        try:
            certificate = credentials.Certificate(info)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid Firebase service account: {exc}") from exc

        try:
            app = firebase_admin.get_app(_APP_NAME)
        except ValueError:
            app = firebase_admin.initialize_app(
                certificate,
                {"databaseURL": firebase.database_url},
                name=_APP_NAME,
            )

        root = settings.store_root_path
        try:
            store = cls(
                latest_ref=db.reference(f"{root}/{LATEST_NODE}", app=app),
                history_ref=db.reference(f"{root}/{HISTORY_NODE}", app=app),
                probe_ref=db.reference(PROBE_PATH, app=app),
                app=app,
            )
        except ValueError as exc:
            firebase_admin.delete_app(app)
            raise ConfigurationError(f"Invalid Realtime Database settings: {exc}") from exc

        try:
            _call("connect", root, lambda: db.reference(root, app=app).get(shallow=True))
        except StoreError:
            firebase_admin.delete_app(app)
            raise
        logger.info(
            "Connected to Realtime Database project %s",
            firebase.project_id,
            extra={"store_path": root},
        )
        return store

    def get_latest(self) -> Optional[Dict[str, Any]]:
        value = _call("read", self._latest.path, self._latest.get)
        return dict(value) if isinstance(value, dict) else None

    def set_latest(self, payload: Dict[str, Any]) -> None:
        _call("write", self._latest.path, lambda: self._latest.set(payload))

    def append_history(self, payload: Dict[str, Any]) -> str:
        reference = _call("push", self._history.path, lambda: self._history.push(payload))
        return reference.key

    def query_last(self, limit: int) -> List[StoredEntry]:
        if limit <= 0:
            return []
        raw = _call(
            "query",
            self._history.path,
            lambda: self._history.order_by_key().limit_to_last(limit).get(),
        )
        if not raw:
            return []
        return [
            StoredEntry(key=key, payload=dict(value) if isinstance(value, dict) else {})
            for key, value in raw.items()
        ]

    def check_connection(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        _call("write", self._probe.path, lambda: self._probe.set(payload))
        value = _call("read", self._probe.path, self._probe.get)
        return dict(value) if isinstance(value, dict) else None

    def close(self) -> None:
        if self._app is None:
            return
        firebase_admin.delete_app(self._app)
        self._app = None
