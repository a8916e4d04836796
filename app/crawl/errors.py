"""
Crawl-layer exceptions.
"""

from __future__ import annotations


class AdapterError(RuntimeError):
    """Raised by a data source when a query fails. Fatal for the run."""


class QuotaExceededError(AdapterError):
    """Raised when the backend reports its rate or usage quota is exhausted."""

    def __init__(self, message: str = "API quota exceeded; retry after cooldown.") -> None:
        if "quota" not in message.lower():
            message = f"quota exceeded: {message}"
        super().__init__(message)


class PersistenceError(Exception):
    """Raised when the durable record backup cannot be read or written."""


class CrawlAlreadyRunningError(RuntimeError):
    """Raised when a run is requested while another run is active."""


class EmptyExportError(ValueError):
    """Raised when exporting a collection with no records."""


class ResetNotConfirmedError(ValueError):
    """Raised when a reset is requested without explicit confirmation."""
