"""Exception types raised by the ingestion and reporting core."""
from __future__ import annotations


class DevlogError(Exception):
    """Base class for errors surfaced to the HTTP adapter."""


class ValidationError(DevlogError):
    """Raised when an event or request parameter is malformed."""


class DuplicateIDError(DevlogError):
    """Raised when an event with the same ``event_id`` is already stored."""

    def __init__(self, event_id: str) -> None:
        super().__init__("event_id already exists")
        self.event_id = event_id


class ConfigError(DevlogError):
    """Raised when the project rules cannot be loaded or compiled."""


class NotFoundError(DevlogError):
    """Raised when a requested project has nothing to report."""


class StoreError(DevlogError):
    """Raised when the durable store fails to read or write."""
