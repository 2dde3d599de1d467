"""Address variant ladder for geocoding queries.

Providers are brittle to exact formatting, so a failed lookup is retried
with progressively more generic forms of the same address. Each rung
trades precision for hit rate.
"""

import re
from typing import Iterable, Optional

from marker_import.core.geocoding.constants import (
    TRAILING_COUNTRY,
    TRAILING_POSTAL_CODE,
)


def _clean(value: str) -> str:
    """Collapse whitespace and strip dangling separators."""
    value = re.sub(r"\s+", " ", value)
    value = re.sub(r"\s*,\s*", ", ", value)
    value = re.sub(r"(,\s*)+", ", ", value)
    return value.strip(" ,")


def strip_postal_code(address: str) -> str:
    """Drop a trailing postal code or ZIP, along with a trailing country."""
    stripped = TRAILING_COUNTRY.sub("", address)
    stripped = TRAILING_POSTAL_CODE.sub("", stripped)
    return _clean(stripped)


def find_region(address: str, region_markers: Iterable[str]) -> Optional[re.Match]:
    """Find the last standalone region marker (e.g. ``QC``) in an address."""
    markers = [re.escape(m) for m in region_markers if m]
    if not markers:
        return None
    pattern = re.compile(rf"(?<![\w-])({'|'.join(markers)})(?![\w-])")
    matches = list(pattern.finditer(address))
    return matches[-1] if matches else None


def truncate_after_region(address: str, region_markers: Iterable[str]) -> str:
    """Cut everything after the region marker, keeping the marker itself."""
    match = find_region(address, region_markers)
    if not match:
        return _clean(address)
    return _clean(address[: match.end()])


def first_segment_with_region(
    address: str, region_markers: Iterable[str], default_region: Optional[str]
) -> Optional[str]:
    """Reduce the address to its first segment plus the region.

    The region is taken from the address when one is present, otherwise
    ``default_region`` is used. Returns None when no region is known.
    """
    markers = list(region_markers)
    match = find_region(address, markers)
    region = match.group(1) if match else default_region
    if not region:
        return None

    segment = address.split(",")[0]
    region_in_segment = find_region(segment, markers)
    if region_in_segment:
        segment = segment[: region_in_segment.start()]
    segment = _clean(TRAILING_POSTAL_CODE.sub("", segment))
    if not segment:
        return None
    return f"{segment}, {region}"


def build_address_variants(
    address: str,
    region_markers: Iterable[str] = (),
    default_region: Optional[str] = None,
    max_variants: int = 4,
) -> list[str]:
    """Build the ordered, de-duplicated list of query variants for an address.

    Args:
        address: Address as supplied by the user
        region_markers: Region abbreviations recognized in addresses
        default_region: Region appended when the address names none
        max_variants: Upper bound on the ladder length

    Returns:
        Variants, starting with the original address
    """
    original = address.strip()
    if not original:
        return []

    markers = list(region_markers)
    candidates = [
        original,
        strip_postal_code(original),
        truncate_after_region(strip_postal_code(original), markers),
        first_segment_with_region(original, markers, default_region),
    ]

    variants: list[str] = []
    seen: set[str] = set()
    for candidate in candidates:
        if not candidate:
            continue
        key = candidate.lower()
        if key in seen:
            continue
        seen.add(key)
        variants.append(candidate)
        if len(variants) >= max_variants:
            break
    return variants
