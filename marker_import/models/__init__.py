"""Data models for the marker import pipeline."""

from .records import (
    AccountLimits,
    CandidateRecord,
    ColumnMapping,
    Coordinates,
    ExistingMarkerFingerprint,
    ManualEntry,
    Marker,
    NewMarker,
    RawRow,
    SkipReason,
    SkipRecord,
)
from .run import (
    ImporterOptions,
    RunPhase,
    RunProgress,
    RunResult,
    RunStatus,
)

__all__ = [
    "AccountLimits",
    "CandidateRecord",
    "ColumnMapping",
    "Coordinates",
    "ExistingMarkerFingerprint",
    "ImporterOptions",
    "ManualEntry",
    "Marker",
    "NewMarker",
    "RawRow",
    "RunPhase",
    "RunProgress",
    "RunResult",
    "RunStatus",
    "SkipReason",
    "SkipRecord",
]
