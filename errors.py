"""Exception types shared by the store adapters, services and routes."""

from __future__ import annotations

from typing import Sequence


class ConfigurationError(RuntimeError):
    """Store credentials or service settings are missing or malformed."""


class InvalidSubmissionError(ValueError):
    """A sensor submission is not a JSON object or lacks required fields."""

    def __init__(self, message: str, missing_fields: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.missing_fields = tuple(missing_fields)


class StoreError(RuntimeError):
    """A read or write against the document store failed."""
