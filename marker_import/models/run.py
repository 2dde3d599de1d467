"""Run-level models: progress snapshots, results and importer options."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from marker_import.models.records import Marker, SkipRecord


class RunPhase(str, Enum):
    """Pipeline phase reported in progress snapshots."""

    PARSING = "parsing"
    VALIDATING = "validating"
    DEDUPLICATING = "deduplicating"
    GEOCODING = "geocoding"
    PERSISTING = "persisting"
    DONE = "done"


class RunProgress(BaseModel):
    """Immutable snapshot of a run's progress, as published to the caller."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    phase: RunPhase
    processed: int = 0
    total: int = 0
    current_label: str = ""

    @property
    def percent(self) -> float:
        """Completion of the current phase, 0-100."""
        if self.total <= 0:
            return 100.0 if self.phase == RunPhase.DONE else 0.0
        return round(min(self.processed, self.total) * 100.0 / self.total, 1)


class RunStatus(str, Enum):
    """Terminal outcome of a run."""

    COMPLETED = "completed"
    PARTIAL = "partial"
    CANCELLED = "cancelled"
    FAILED = "failed"


class RunResult(BaseModel):
    """Final summary of an import run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    status: RunStatus
    markers_added: int = 0
    duplicates_skipped: int = 0
    internal_duplicates: int = 0
    external_duplicates: int = 0
    rows_skipped: int = 0
    geocode_failures: int = 0
    geocoding_denied: int = 0
    persist_failures: int = 0
    ceiling_reached: bool = False
    cancelled: bool = False
    errors: list[str] = Field(default_factory=list)
    skips: list[SkipRecord] = Field(default_factory=list)
    markers: list[Marker] = Field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def should_prompt_upgrade(self) -> bool:
        """The caller may offer a plan upgrade when the ceiling stopped the run."""
        return self.ceiling_reached or self.geocoding_denied > 0

    @property
    def should_offer_retry(self) -> bool:
        return self.geocode_failures > 0 or self.persist_failures > 0


class ImporterOptions(BaseModel):
    """Tunables for one pipeline instance, usually built from settings."""

    model_config = ConfigDict(frozen=True)

    min_request_interval: float = Field(default=1.0, ge=0)
    timeout_retries: int = Field(default=1, ge=0)
    persist_timeout_retries: int = Field(default=1, ge=0)
    region_markers: tuple[str, ...] = ()
    default_region: Optional[str] = None
    max_variants: int = Field(default=4, ge=1)
