"""Prometheus metrics for import runs."""

from typing import Any

from prometheus_client import REGISTRY, Counter


def get_or_create_counter(
    name: str, description: str, labels: list[str] | None = None
) -> Any:
    """Get existing counter from registry or create new one.

    Re-importing this module (test reloads, multiple pipelines in one
    process) must not register the same collector twice.
    """
    for collector in list(REGISTRY._collector_to_names.keys()):
        if getattr(collector, "_name", None) == name:
            return collector
    if labels:
        return Counter(name, description, labels)
    return Counter(name, description)


IMPORT_RUNS = get_or_create_counter(
    "marker_import_runs",
    "Import runs by terminal status",
    ["status"],
)

IMPORT_ROWS_SKIPPED = get_or_create_counter(
    "marker_import_rows_skipped",
    "Rows rejected by normalization",
    ["reason"],
)

IMPORT_DUPLICATES = get_or_create_counter(
    "marker_import_duplicates",
    "Candidates dropped as duplicates",
    ["kind"],
)

GEOCODE_LOOKUPS = get_or_create_counter(
    "marker_import_geocode_lookups",
    "Geocoding provider lookups by outcome",
    ["provider", "outcome"],
)

MARKERS_ADDED = get_or_create_counter(
    "marker_import_markers_added",
    "Markers persisted by import runs",
)
