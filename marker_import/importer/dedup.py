"""Two-pass duplicate removal for candidate records."""

import re
from dataclasses import dataclass, field
from typing import Iterable

from marker_import.models.records import CandidateRecord, ExistingMarkerFingerprint

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^\w\s,.-]")

Fingerprint = tuple[str, str]


def normalize_fingerprint_part(value: str | None) -> str:
    """Normalize one fingerprint component.

    Lowercases, trims, collapses whitespace runs and drops every character
    other than word characters, whitespace, commas, periods and hyphens.
    """
    if not value:
        return ""
    text = _WHITESPACE.sub(" ", value.strip().lower())
    return _DISALLOWED.sub("", text)


def fingerprint(name: str | None, address: str | None) -> Fingerprint:
    """Duplicate-detection key for a (name, address) pair."""
    return normalize_fingerprint_part(name), normalize_fingerprint_part(address)


@dataclass
class DedupResult:
    """Survivors of both dedup passes plus the per-pass counts."""

    unique: list[CandidateRecord] = field(default_factory=list)
    internal_duplicates: int = 0
    external_duplicates: int = 0

    @property
    def duplicate_count(self) -> int:
        return self.internal_duplicates + self.external_duplicates


def remove_internal_duplicates(
    records: Iterable[CandidateRecord],
) -> tuple[list[CandidateRecord], int]:
    """Drop records whose fingerprint was already seen earlier in the batch.

    Returns:
        Tuple of (survivors in original order, number dropped)
    """
    seen: set[Fingerprint] = set()
    unique: list[CandidateRecord] = []
    dropped = 0
    for record in records:
        key = fingerprint(record.name, record.address)
        if key in seen:
            dropped += 1
            continue
        seen.add(key)
        unique.append(record)
    return unique, dropped


def remove_external_duplicates(
    records: Iterable[CandidateRecord],
    existing: Iterable[ExistingMarkerFingerprint],
) -> tuple[list[CandidateRecord], int]:
    """Drop records matching a marker already stored on the target map."""
    known = {fingerprint(marker.name, marker.address) for marker in existing}
    unique: list[CandidateRecord] = []
    dropped = 0
    for record in records:
        if fingerprint(record.name, record.address) in known:
            dropped += 1
            continue
        unique.append(record)
    return unique, dropped


def deduplicate(
    records: Iterable[CandidateRecord],
    existing: Iterable[ExistingMarkerFingerprint] = (),
) -> DedupResult:
    """Run the internal pass, then the external pass on its survivors.

    Args:
        records: Candidate records for the run, in source order
        existing: Snapshot of the target map's markers

    Returns:
        DedupResult with disjoint internal and external counts
    """
    survivors, internal = remove_internal_duplicates(records)
    unique, external = remove_external_duplicates(survivors, existing)
    return DedupResult(
        unique=unique,
        internal_duplicates=internal,
        external_duplicates=external,
    )
