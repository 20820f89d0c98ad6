"""Domain models shared across services and store adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(slots=True)
class StoredEntry:
    """A single history entry as held by the store, before normalization."""

    key: str
    payload: Dict[str, Any] = field(default_factory=dict)
