"""Import pipeline orchestration.

One run flows strictly downstream: normalize rows, deduplicate the batch
against itself and against the target map, then geocode and persist the
survivors one at a time in source order. Every run ends with a RunResult,
including runs that were cancelled, hit the marker ceiling or lost the store.
"""

import asyncio
from typing import Iterable, Optional
from uuid import uuid4

from geopy.extra.rate_limiter import AsyncRateLimiter

from marker_import.core.config import Settings, settings as default_settings
from marker_import.core.geocoding.cache import GeocodeCache
from marker_import.core.geocoding.providers import GeocodingProvider, build_providers
from marker_import.core.geocoding.rate_limiter import build_rate_limiter
from marker_import.core.logging import get_run_logger
from marker_import.core.metrics import IMPORT_DUPLICATES, IMPORT_ROWS_SKIPPED, IMPORT_RUNS
from marker_import.errors import CeilingReachedError, FatalImportError, StoreError
from marker_import.importer.audit import SecurityAudit
from marker_import.importer.dedup import deduplicate
from marker_import.importer.gate import PersistenceGate
from marker_import.importer.normalizer import normalize_row
from marker_import.importer.ports import AccountDirectory, MarkerStore
from marker_import.importer.reporter import ProgressCallback, ProgressReporter, RunState
from marker_import.importer.resolver import GeocodingResolver, ResolutionStatus
from marker_import.models.records import (
    AccountLimits,
    ColumnMapping,
    ExistingMarkerFingerprint,
    ManualEntry,
    RawRow,
    SkipRecord,
)
from marker_import.models.run import ImporterOptions, RunPhase, RunResult

MANUAL_ENTRY_MAPPING = ColumnMapping(name="name", address="address", lat="lat", lng="lng")

GEOCODING_DENIED_MESSAGE = (
    "Geocoding is not available on your plan; "
    "rows without coordinates were not imported"
)


class ImportPipeline:
    """Runs marker imports against a store and an account directory.

    The rate limiter is owned by the pipeline, so consecutive runs on the
    same instance keep the delay between provider calls.
    """

    def __init__(
        self,
        store: MarkerStore,
        accounts: AccountDirectory,
        primary: Optional[GeocodingProvider] = None,
        fallback: Optional[GeocodingProvider] = None,
        options: Optional[ImporterOptions] = None,
        rate_limiter: Optional[AsyncRateLimiter] = None,
    ) -> None:
        self.store = store
        self.accounts = accounts
        self.primary = primary
        self.fallback = fallback
        self.options = options or ImporterOptions()
        self.rate_limiter = rate_limiter or build_rate_limiter(
            self.options.min_request_interval
        )

    @classmethod
    def from_settings(
        cls,
        store: MarkerStore,
        accounts: AccountDirectory,
        settings: Optional[Settings] = None,
    ) -> "ImportPipeline":
        """Build a pipeline with providers and cache configured from settings."""
        settings = settings or default_settings
        cache = None
        if settings.REDIS_URL:
            cache = GeocodeCache.from_url(settings.REDIS_URL, settings.GEOCODING_CACHE_TTL)
        primary, fallback = build_providers(settings, cache)
        return cls(
            store,
            accounts,
            primary=primary,
            fallback=fallback,
            options=settings.importer_options(),
        )

    async def run(
        self,
        rows: Iterable[RawRow],
        mapping: ColumnMapping,
        account_id: str,
        map_id: str,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
        run_id: Optional[str] = None,
    ) -> RunResult:
        """Import rows into a map.

        Args:
            rows: Parsed rows, column name to cell text
            mapping: Column bindings for name, address, lat and lng
            account_id: Account owning the map
            map_id: Target map
            progress: Optional callback receiving RunProgress snapshots
            cancel_event: Optional event; once set, the run stops at the next
                record boundary and keeps what was already persisted
            run_id: Optional run identifier, generated when omitted

        Returns:
            The final RunResult
        """
        state = RunState(run_id=run_id or uuid4().hex)
        reporter = ProgressReporter(progress)
        logger = get_run_logger(state.run_id, account_id, map_id)
        cancel_event = cancel_event or asyncio.Event()

        logger.info("import_run_started")
        try:
            await self._execute(
                state, reporter, rows, mapping, account_id, map_id, cancel_event
            )
        except FatalImportError as e:
            state.fatal = True
            state.add_error(str(e))
            logger.error("import_run_failed", error=str(e))
        except Exception as e:
            state.fatal = True
            state.add_error(str(e) or type(e).__name__)
            logger.exception("import_run_failed", error=str(e))

        state.phase = RunPhase.DONE
        state.current_label = ""
        await reporter.publish(state)

        result = state.to_result()
        IMPORT_RUNS.labels(status=result.status.value).inc()
        logger.info(
            "import_run_finished",
            status=result.status.value,
            markers_added=result.markers_added,
            duplicates_skipped=result.duplicates_skipped,
            rows_skipped=result.rows_skipped,
            geocode_failures=result.geocode_failures,
            geocoding_denied=result.geocoding_denied,
            persist_failures=result.persist_failures,
            duration_seconds=result.duration_seconds,
        )
        return result

    async def run_entries(
        self,
        entries: Iterable[ManualEntry],
        account_id: str,
        map_id: str,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RunResult:
        """Import manually typed entries through the same pipeline."""
        rows = [entry.model_dump() for entry in entries]
        return await self.run(
            rows,
            MANUAL_ENTRY_MAPPING,
            account_id,
            map_id,
            progress=progress,
            cancel_event=cancel_event,
        )

    async def _execute(
        self,
        state: RunState,
        reporter: ProgressReporter,
        rows: Iterable[RawRow],
        mapping: ColumnMapping,
        account_id: str,
        map_id: str,
        cancel_event: asyncio.Event,
    ) -> None:
        logger = get_run_logger(state.run_id, account_id, map_id)

        state.enter_phase(RunPhase.PARSING)
        rows = list(rows)
        state.total = len(rows)
        await reporter.publish(state)

        if not mapping.is_usable():
            logger.warning("column_mapping_incomplete", mapping=mapping.model_dump())

        # Normalize
        state.enter_phase(RunPhase.VALIDATING, total=len(rows))
        candidates = []
        for index, row in enumerate(rows):
            if cancel_event.is_set():
                self._mark_cancelled(state, logger)
                return
            result = normalize_row(row, mapping, index)
            if isinstance(result, SkipRecord):
                state.skips.append(result)
                IMPORT_ROWS_SKIPPED.labels(reason=result.reason.value).inc()
            else:
                candidates.append(result)
            await reporter.checkpoint(state, advance=True)

        limits = await self._load_limits(account_id)
        existing = await self._load_existing(account_id, map_id)

        # Deduplicate
        state.enter_phase(RunPhase.DEDUPLICATING, total=len(candidates))
        dedup = deduplicate(candidates, existing)
        state.internal_duplicates = dedup.internal_duplicates
        state.external_duplicates = dedup.external_duplicates
        state.processed = len(candidates)
        if dedup.internal_duplicates:
            IMPORT_DUPLICATES.labels(kind="internal").inc(dedup.internal_duplicates)
        if dedup.external_duplicates:
            IMPORT_DUPLICATES.labels(kind="external").inc(dedup.external_duplicates)
        await reporter.publish(state)
        logger.info(
            "candidates_deduplicated",
            candidates=len(candidates),
            unique=len(dedup.unique),
            internal_duplicates=dedup.internal_duplicates,
            external_duplicates=dedup.external_duplicates,
        )

        gate = PersistenceGate(
            self.store,
            account_id,
            map_id,
            ceiling=limits.max_markers_per_map,
            existing_count=len(existing),
            persist_timeout_retries=self.options.persist_timeout_retries,
        )
        resolver = GeocodingResolver(
            self.primary,
            self.fallback,
            rate_limiter=self.rate_limiter,
            options=self.options,
            reporter=reporter,
            audit=SecurityAudit(account_id, map_id, state.run_id),
        )

        # Geocode and persist, one record at a time
        state.enter_phase(RunPhase.GEOCODING, total=len(dedup.unique))
        for record in dedup.unique:
            if cancel_event.is_set():
                self._mark_cancelled(state, logger)
                return

            try:
                gate.ensure_capacity()
                state.phase = RunPhase.GEOCODING
                resolution = await resolver.resolve(
                    record, limits.geocoding_allowed, state
                )

                if resolution.status == ResolutionStatus.DENIED:
                    state.geocoding_denied += 1
                    state.add_error(GEOCODING_DENIED_MESSAGE)
                elif not resolution.ok:
                    state.geocode_failures += 1
                    state.add_error(
                        f"Could not find a location for '{record.name}' ({record.address})"
                    )
                else:
                    state.phase = RunPhase.PERSISTING
                    marker = await gate.persist(record, resolution.coordinates)
                    if marker is None:
                        state.persist_failures += 1
                        state.add_error(f"Could not save '{record.name}'")
                    else:
                        state.markers.append(marker)
            except CeilingReachedError as e:
                state.ceiling_reached = True
                state.add_error(str(e))
                logger.warning(
                    "marker_ceiling_reached",
                    ceiling=e.ceiling,
                    existing=e.existing,
                    added=e.added,
                    remaining_records=len(dedup.unique) - state.processed,
                )
                await reporter.checkpoint(state, label=record.name)
                return

            await reporter.checkpoint(state, label=record.name, advance=True)

    async def _load_limits(self, account_id: str) -> AccountLimits:
        try:
            return await self.accounts.account_limits(account_id)
        except StoreError as e:
            raise FatalImportError(str(e), cause=e) from e

    async def _load_existing(
        self, account_id: str, map_id: str
    ) -> list[ExistingMarkerFingerprint]:
        try:
            return list(await self.store.existing_markers(account_id, map_id))
        except StoreError as e:
            raise FatalImportError(str(e), cause=e) from e

    @staticmethod
    def _mark_cancelled(state: RunState, logger) -> None:
        state.cancelled = True
        logger.info(
            "import_run_cancelled",
            phase=state.phase.value,
            processed=state.processed,
            markers_added=state.markers_added,
        )
