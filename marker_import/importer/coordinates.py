"""Parsing and range checks for user-supplied coordinates."""

import re

from marker_import.core.geocoding.constants import POSTAL_CODE
from marker_import.errors import CoordinateValidationError
from marker_import.models.records import Coordinates, SkipReason

# Plain decimal number: optional sign, digits, optional fraction
DECIMAL = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")

ALPHA_WORD = re.compile(r"[^\W\d_]{2,}")
ADDRESS_PUNCTUATION = re.compile(r"[,#]")
CIVIC_NUMBER = re.compile(r"^\s*\d+[A-Za-z]?[\s,-]")


def looks_like_address(value: str) -> bool:
    """Guess whether a coordinate cell actually holds address text.

    Requires at least two alphabetic words plus something typical of postal
    addresses: a comma, a ``#`` unit marker, a leading civic number or a
    postal code.
    """
    if len(ALPHA_WORD.findall(value)) < 2:
        return False
    return bool(
        ADDRESS_PUNCTUATION.search(value)
        or CIVIC_NUMBER.search(value)
        or POSTAL_CODE.search(value)
    )


def parse_decimal(value: str, field: str) -> float:
    """Parse one coordinate cell as a plain decimal number.

    Raises:
        CoordinateValidationError: If the cell is blank, not numeric or
            looks like an address
    """
    text = (value or "").strip()
    if not text:
        raise CoordinateValidationError(
            SkipReason.INVALID_COORDINATES, f"{field} is missing"
        )
    if DECIMAL.match(text):
        return float(text)
    if looks_like_address(text):
        raise CoordinateValidationError(
            SkipReason.ADDRESS_IN_COORDINATE_COLUMN,
            f"{field} column contains an address ('{text[:60]}'); "
            "map it to the address column instead",
        )
    raise CoordinateValidationError(
        SkipReason.INVALID_COORDINATES, f"{field} is not a number: '{text[:60]}'"
    )


def validate_coordinates(raw_lat: str, raw_lng: str) -> Coordinates:
    """Parse and range-check a latitude/longitude pair.

    Args:
        raw_lat: Latitude cell text
        raw_lng: Longitude cell text

    Returns:
        The parsed coordinates

    Raises:
        CoordinateValidationError: With the skip reason to report
    """
    parsed: dict[str, float] = {}
    errors: list[CoordinateValidationError] = []
    for field, raw in (("latitude", raw_lat), ("longitude", raw_lng)):
        try:
            parsed[field] = parse_decimal(raw, field)
        except CoordinateValidationError as e:
            errors.append(e)

    if errors:
        # An address pasted in either column is the more actionable report
        for error in errors:
            if error.reason == SkipReason.ADDRESS_IN_COORDINATE_COLUMN:
                raise error
        raise errors[0]

    lat, lng = parsed["latitude"], parsed["longitude"]

    if not -90 <= lat <= 90:
        raise CoordinateValidationError(
            SkipReason.INVALID_COORDINATES,
            f"Latitude must be between -90 and 90, got {lat}",
        )
    if not -180 <= lng <= 180:
        raise CoordinateValidationError(
            SkipReason.INVALID_COORDINATES,
            f"Longitude must be between -180 and 180, got {lng}",
        )
    return Coordinates(lat=lat, lng=lng)
