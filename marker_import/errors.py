"""Exception hierarchy for the marker import pipeline.

Row-level problems are reported as data (skip records, counters); only the
run-level classes below ever stop a run.
"""

from typing import Optional

from marker_import.models.records import SkipReason


class MarkerImportError(Exception):
    """Base class for all import errors."""


class CoordinateValidationError(MarkerImportError, ValueError):
    """Raised when a raw latitude/longitude pair cannot be accepted."""

    def __init__(self, reason: SkipReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class ProviderError(MarkerImportError):
    """A geocoding provider failed to answer a query."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    """A geocoding request did not complete within its timeout."""


class StoreError(MarkerImportError):
    """Base class for marker store failures."""


class StoreTimeoutError(StoreError):
    """A store call timed out; the write may be retried."""


class QuotaExceededError(StoreError):
    """The store refused a write because the map is full."""


class StorePermissionError(StoreError):
    """The caller may not write to the target map at all."""


class StoreUnavailableError(StoreError):
    """The store cannot be reached."""


class ImportAbortedError(MarkerImportError):
    """Stops the remainder of a run."""


class CeilingReachedError(ImportAbortedError):
    """The account's per-map marker ceiling has been reached."""

    def __init__(self, ceiling: int, existing: int, added: int) -> None:
        super().__init__(
            f"Marker limit reached: this map allows {ceiling} markers "
            f"({existing} existing, {added} added in this import)"
        )
        self.ceiling = ceiling
        self.existing = existing
        self.added = added


class FatalImportError(ImportAbortedError):
    """A run-level failure; the message is surfaced verbatim to the caller."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


# Store failures that end the run instead of failing a single record
FATAL_STORE_ERRORS = (StorePermissionError, StoreUnavailableError)
