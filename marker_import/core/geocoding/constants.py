"""Address patterns used to build geocoding query variants."""

import re

# Province and territory abbreviations recognized as region markers
CANADIAN_REGION_MARKERS = (
    "AB",
    "BC",
    "MB",
    "NB",
    "NL",
    "NS",
    "NT",
    "NU",
    "ON",
    "PE",
    "QC",
    "SK",
    "YT",
)

# Canadian postal code (H1A 1A1 / H1A1A1) or US ZIP / ZIP+4
POSTAL_CODE_PATTERN = r"(?:[A-Za-z]\d[A-Za-z][ -]?\d[A-Za-z]\d|\d{5}(?:-\d{4})?)"

TRAILING_POSTAL_CODE = re.compile(rf"[\s,]*\b{POSTAL_CODE_PATTERN}\s*$")

POSTAL_CODE = re.compile(rf"\b{POSTAL_CODE_PATTERN}\b")

# Country names commonly appended after the region marker
TRAILING_COUNTRY = re.compile(
    r"[\s,]*\b(?:canada|united states|usa|u\.s\.a\.)\s*$", re.IGNORECASE
)
