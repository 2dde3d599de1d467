"""Row normalization: raw table rows to candidate records or skip records."""

from typing import Iterable, Optional, Union

from marker_import.core.logging import get_logger
from marker_import.errors import CoordinateValidationError
from marker_import.importer.coordinates import validate_coordinates
from marker_import.models.records import (
    CandidateRecord,
    ColumnMapping,
    Coordinates,
    RawRow,
    SkipReason,
    SkipRecord,
)

logger = get_logger(__name__)

NormalizedRow = Union[CandidateRecord, SkipRecord]


def _cell(row: RawRow, column: Optional[str]) -> str:
    """Trimmed cell text, or an empty string for unmapped/absent columns."""
    if not column:
        return ""
    value = row.get(column)
    if value is None:
        return ""
    return str(value).strip()


def normalize_row(row: RawRow, mapping: ColumnMapping, row_index: int) -> NormalizedRow:
    """Turn one raw row into a candidate record or a skip record.

    Never raises for bad input; every rejection becomes a SkipRecord with the
    most specific reason, a missing name taking precedence.

    Args:
        row: Column name to cell text
        mapping: Column bindings for this run
        row_index: Zero-based ordinal of the row in the source

    Returns:
        CandidateRecord or SkipRecord
    """
    name = _cell(row, mapping.name)
    address = _cell(row, mapping.address)

    coordinates: Optional[Coordinates] = None
    coordinate_error: Optional[CoordinateValidationError] = None
    if mapping.has_coordinates:
        raw_lat = _cell(row, mapping.lat)
        raw_lng = _cell(row, mapping.lng)
        # A half-filled pair is only an error when there is no address to geocode
        if (raw_lat and raw_lng) or ((raw_lat or raw_lng) and not address):
            try:
                coordinates = validate_coordinates(raw_lat, raw_lng)
            except CoordinateValidationError as e:
                coordinate_error = e

    if not name:
        return SkipRecord(
            row_index=row_index,
            reason=SkipReason.MISSING_NAME,
            detail="Row has no name",
        )

    if coordinate_error is not None:
        return SkipRecord(
            row_index=row_index,
            reason=coordinate_error.reason,
            detail=str(coordinate_error),
        )

    if not address and coordinates is None:
        return SkipRecord(
            row_index=row_index,
            reason=SkipReason.MISSING_ADDRESS_AND_COORDS,
            detail="Row has neither an address nor coordinates",
        )

    if not address and coordinates is not None:
        address = coordinates.label()

    return CandidateRecord(
        name=name,
        address=address,
        lat=coordinates.lat if coordinates else None,
        lng=coordinates.lng if coordinates else None,
        row_index=row_index,
    )


def normalize_rows(
    rows: Iterable[RawRow], mapping: ColumnMapping
) -> tuple[list[CandidateRecord], list[SkipRecord]]:
    """Normalize a batch of rows, preserving source order.

    Returns:
        Tuple of (candidates, skips)
    """
    candidates: list[CandidateRecord] = []
    skips: list[SkipRecord] = []
    for index, row in enumerate(rows):
        result = normalize_row(row, mapping, index)
        if isinstance(result, SkipRecord):
            logger.debug(
                "row_skipped", row_index=index, reason=result.reason.value
            )
            skips.append(result)
        else:
            candidates.append(result)
    return candidates, skips
