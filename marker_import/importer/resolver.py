"""Geocoding resolver: candidate record to coordinates via the variant ladder."""

from enum import Enum
from typing import Optional

from geopy.extra.rate_limiter import AsyncRateLimiter
from pydantic import BaseModel, ConfigDict

from marker_import.core.geocoding.providers import GeocodingProvider
from marker_import.core.geocoding.rate_limiter import build_rate_limiter
from marker_import.core.geocoding.variants import build_address_variants
from marker_import.core.logging import get_logger
from marker_import.core.metrics import GEOCODE_LOOKUPS
from marker_import.errors import ProviderError, ProviderTimeoutError
from marker_import.importer.audit import SecurityAudit
from marker_import.importer.reporter import ProgressReporter, RunState
from marker_import.models.records import CandidateRecord, Coordinates
from marker_import.models.run import ImporterOptions

logger = get_logger(__name__)


class ResolutionStatus(str, Enum):
    """How a record ended up with (or without) coordinates."""

    SUPPLIED = "supplied"
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"
    DENIED = "denied"


class Resolution(BaseModel):
    """Outcome of resolving one candidate record."""

    model_config = ConfigDict(frozen=True)

    status: ResolutionStatus
    coordinates: Optional[Coordinates] = None
    provider: Optional[str] = None
    query: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.coordinates is not None


class GeocodingResolver:
    """Resolves addresses with a primary provider, then a fallback.

    The full variant ladder is tried against the primary provider before
    the fallback sees any query. Each record that calls out runs its whole
    ladder through one rate limiter call; records with supplied coordinates
    never touch the limiter.
    """

    def __init__(
        self,
        primary: Optional[GeocodingProvider],
        fallback: Optional[GeocodingProvider] = None,
        rate_limiter: Optional[AsyncRateLimiter] = None,
        options: Optional[ImporterOptions] = None,
        reporter: Optional[ProgressReporter] = None,
        audit: Optional[SecurityAudit] = None,
    ) -> None:
        self.options = options or ImporterOptions()
        self.primary = primary
        self.fallback = fallback
        self.rate_limiter = rate_limiter or build_rate_limiter(
            self.options.min_request_interval
        )
        self.reporter = reporter or ProgressReporter()
        self.audit = audit or SecurityAudit()

    @property
    def providers(self) -> list[GeocodingProvider]:
        return [p for p in (self.primary, self.fallback) if p is not None]

    def variants_for(self, record: CandidateRecord) -> list[str]:
        return build_address_variants(
            record.address,
            region_markers=self.options.region_markers,
            default_region=self.options.default_region,
            max_variants=self.options.max_variants,
        )

    async def resolve(
        self,
        record: CandidateRecord,
        geocoding_allowed: bool,
        state: Optional[RunState] = None,
    ) -> Resolution:
        """Resolve one record to coordinates.

        Args:
            record: Candidate record, with or without supplied coordinates
            geocoding_allowed: Whether the account may call geocoding providers
            state: Run state updated with the record label on each attempt

        Returns:
            Resolution; never raises for provider failures
        """
        supplied = record.coordinates
        if supplied is not None:
            return Resolution(status=ResolutionStatus.SUPPLIED, coordinates=supplied)

        if not geocoding_allowed:
            self.audit.geocoding_denied(record)
            return Resolution(status=ResolutionStatus.DENIED)

        variants = self.variants_for(record)
        if not variants or not self.providers:
            logger.warning(
                "geocoding_skipped",
                row_index=record.row_index,
                reason="no providers configured" if variants else "empty address",
            )
            return Resolution(status=ResolutionStatus.UNRESOLVED)

        return await self.rate_limiter(self._lookup, record, variants, state)

    async def _lookup(
        self,
        record: CandidateRecord,
        variants: list[str],
        state: Optional[RunState],
    ) -> Resolution:
        """Walk every provider across the variant ladder."""
        attempts = 0
        for provider in self.providers:
            for variant in variants:
                attempts += 1
                if state is not None:
                    await self.reporter.checkpoint(state, label=record.name)
                try:
                    results = await self._query(provider, variant)
                except ProviderTimeoutError as e:
                    logger.warning(
                        "geocoding_timed_out",
                        provider=provider.name,
                        query=variant,
                        row_index=record.row_index,
                        error=str(e),
                    )
                    return Resolution(
                        status=ResolutionStatus.UNRESOLVED,
                        provider=provider.name,
                        query=variant,
                        attempts=attempts,
                    )
                except ProviderError as e:
                    GEOCODE_LOOKUPS.labels(provider=provider.name, outcome="error").inc()
                    logger.warning(
                        "geocoding_provider_error",
                        provider=provider.name,
                        query=variant,
                        error=str(e),
                    )
                    continue

                if results:
                    GEOCODE_LOOKUPS.labels(provider=provider.name, outcome="hit").inc()
                    logger.debug(
                        "geocoding_resolved",
                        provider=provider.name,
                        query=variant,
                        lat=results[0].lat,
                        lng=results[0].lng,
                    )
                    return Resolution(
                        status=ResolutionStatus.RESOLVED,
                        coordinates=results[0],
                        provider=provider.name,
                        query=variant,
                        attempts=attempts,
                    )
                GEOCODE_LOOKUPS.labels(provider=provider.name, outcome="miss").inc()

            logger.info(
                "geocoding_provider_exhausted",
                provider=provider.name,
                row_index=record.row_index,
                variants=len(variants),
            )

        return Resolution(status=ResolutionStatus.UNRESOLVED, attempts=attempts)

    async def _query(self, provider: GeocodingProvider, query: str) -> list[Coordinates]:
        """Call a provider, retrying timeouts up to ``timeout_retries`` times.

        Errors outside the provider hierarchy are raised as ProviderError so
        they cost the variant, not the run.
        """
        retries = self.options.timeout_retries
        for attempt in range(retries + 1):
            try:
                return await provider.geocode(query)
            except ProviderTimeoutError:
                GEOCODE_LOOKUPS.labels(provider=provider.name, outcome="timeout").inc()
                if attempt == retries:
                    raise
                logger.info(
                    "geocoding_timeout_retry",
                    provider=provider.name,
                    attempt=attempt + 1,
                    max_retries=retries,
                )
            except ProviderError:
                raise
            except Exception as e:
                logger.exception(
                    "geocoding_provider_crashed", provider=provider.name, query=query
                )
                raise ProviderError(provider.name, str(e) or type(e).__name__) from e
        return []
