"""Persistence gate: marker ceiling enforcement and single-record writes."""

from typing import Optional

from marker_import.core.logging import get_logger
from marker_import.core.metrics import MARKERS_ADDED
from marker_import.errors import (
    FATAL_STORE_ERRORS,
    CeilingReachedError,
    FatalImportError,
    QuotaExceededError,
    StoreError,
    StoreTimeoutError,
)
from marker_import.importer.ports import MarkerStore
from marker_import.models.records import CandidateRecord, Coordinates, Marker, NewMarker

logger = get_logger(__name__)


class PersistenceGate:
    """Writes markers one at a time without ever exceeding the map ceiling.

    The running total is ``existing_count + added``; it is only mutated
    here, from the single processing sequence of one run.
    """

    def __init__(
        self,
        store: MarkerStore,
        account_id: str,
        map_id: str,
        ceiling: Optional[int],
        existing_count: int = 0,
        persist_timeout_retries: int = 1,
    ) -> None:
        """Initialize the gate.

        Args:
            store: Marker store to write to
            account_id: Account owning the target map
            map_id: Target map
            ceiling: Per-map marker ceiling, None for unlimited
            existing_count: Markers already on the map when the run started
            persist_timeout_retries: Extra attempts after a store timeout
        """
        self.store = store
        self.account_id = account_id
        self.map_id = map_id
        self.ceiling = ceiling
        self.existing_count = existing_count
        self.persist_timeout_retries = persist_timeout_retries
        self.added = 0

    @property
    def total(self) -> int:
        return self.existing_count + self.added

    @property
    def remaining(self) -> Optional[int]:
        if self.ceiling is None:
            return None
        return max(0, self.ceiling - self.total)

    def has_capacity(self) -> bool:
        return self.ceiling is None or self.total < self.ceiling

    def ensure_capacity(self) -> None:
        """Raise CeilingReachedError if one more marker would exceed the ceiling."""
        if not self.has_capacity():
            raise self._ceiling_error()

    def _ceiling_error(self) -> CeilingReachedError:
        ceiling = self.ceiling if self.ceiling is not None else self.total
        return CeilingReachedError(ceiling, self.existing_count, self.added)

    async def persist(
        self, record: CandidateRecord, coordinates: Coordinates
    ) -> Optional[Marker]:
        """Persist one record.

        Returns:
            The stored marker, or None if the write timed out on every attempt

        Raises:
            CeilingReachedError: If the map is full (locally or per the store)
            FatalImportError: If the store is unreachable or refuses access
        """
        self.ensure_capacity()
        new_marker = NewMarker.from_candidate(record, coordinates)

        retries = self.persist_timeout_retries
        for attempt in range(retries + 1):
            try:
                marker = await self.store.persist(
                    self.account_id, self.map_id, new_marker
                )
            except StoreTimeoutError as e:
                if attempt == retries:
                    logger.error(
                        "marker_persist_failed",
                        row_index=record.row_index,
                        name=record.name,
                        error=str(e),
                    )
                    return None
                logger.warning(
                    "marker_persist_retry",
                    row_index=record.row_index,
                    attempt=attempt + 1,
                    max_retries=retries,
                )
                continue
            except QuotaExceededError as e:
                logger.warning("store_quota_exceeded", error=str(e))
                if self.ceiling is None:
                    self.ceiling = self.total
                raise self._ceiling_error() from e
            except FATAL_STORE_ERRORS as e:
                raise FatalImportError(str(e), cause=e) from e
            except StoreError as e:
                # Unclassified store failures are treated as connectivity loss
                raise FatalImportError(str(e), cause=e) from e

            self.added += 1
            MARKERS_ADDED.inc()
            logger.info(
                "marker_persisted",
                marker_id=marker.id,
                name=marker.name,
                row_index=record.row_index,
            )
            return marker
        return None
