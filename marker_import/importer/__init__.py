"""Import pipeline components."""

from marker_import.importer.dedup import DedupResult, deduplicate
from marker_import.importer.gate import PersistenceGate
from marker_import.importer.normalizer import normalize_row, normalize_rows
from marker_import.importer.pipeline import ImportPipeline
from marker_import.importer.ports import AccountDirectory, MarkerStore
from marker_import.importer.reporter import ProgressReporter, RunState
from marker_import.importer.resolver import (
    GeocodingResolver,
    Resolution,
    ResolutionStatus,
)

__all__ = [
    "AccountDirectory",
    "DedupResult",
    "GeocodingResolver",
    "ImportPipeline",
    "MarkerStore",
    "PersistenceGate",
    "ProgressReporter",
    "Resolution",
    "ResolutionStatus",
    "RunState",
    "deduplicate",
    "normalize_row",
    "normalize_rows",
]
