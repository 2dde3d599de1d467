"""Record models flowing through the marker import pipeline."""

from enum import Enum
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Rows as handed over by the file parser: column name -> cell text
RawRow = Mapping[str, Optional[str]]


class Coordinates(BaseModel):
    """A WGS84 latitude/longitude pair."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lng: float = Field(
        ..., ge=-180, le=180, description="Longitude in decimal degrees"
    )

    def label(self) -> str:
        """Return the ``"lat, lng"`` display form used for synthesized addresses."""
        return f"{self.lat}, {self.lng}"


class ColumnMapping(BaseModel):
    """Binds the four import fields to column names of the source table."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    address: Optional[str] = None
    lat: Optional[str] = None
    lng: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return bool(self.lat and self.lng)

    def is_usable(self) -> bool:
        """Check whether this mapping can ever produce a candidate record.

        A name column is always required, plus either an address column or
        both coordinate columns.
        """
        return bool(self.name) and (bool(self.address) or self.has_coordinates)


class CandidateRecord(BaseModel):
    """A normalized row eligible for dedup, geocoding and persistence."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    address: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    row_index: int = 0

    @model_validator(mode="after")
    def check_locatable(self) -> "CandidateRecord":
        """A candidate needs an address or a full coordinate pair."""
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be provided together")
        if not self.address and self.lat is None:
            raise ValueError("candidate needs an address or coordinates")
        return self

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.lat is None or self.lng is None:
            return None
        return Coordinates(lat=self.lat, lng=self.lng)


class SkipReason(str, Enum):
    """Why a raw row never became a candidate record."""

    MISSING_NAME = "missing_name"
    MISSING_ADDRESS_AND_COORDS = "missing_address_and_coords"
    INVALID_COORDINATES = "invalid_coordinates"
    ADDRESS_IN_COORDINATE_COLUMN = "address_in_coordinate_column"


class SkipRecord(BaseModel):
    """A rejected row, reported in the run summary only."""

    model_config = ConfigDict(frozen=True)

    row_index: int
    reason: SkipReason
    detail: str = ""


class ExistingMarkerFingerprint(BaseModel):
    """Projection of a marker already stored on the target map."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    address: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


class NewMarker(BaseModel):
    """Marker payload handed to the store; the store assigns the id."""

    model_config = ConfigDict(frozen=True)

    name: str
    address: str
    lat: float
    lng: float
    visible: bool = True
    type: str = "other"
    tags: Optional[list[str]] = None
    group_hint: Optional[str] = None

    @classmethod
    def from_candidate(
        cls, record: CandidateRecord, coordinates: Coordinates
    ) -> "NewMarker":
        return cls(
            name=record.name,
            address=record.address,
            lat=coordinates.lat,
            lng=coordinates.lng,
        )


class Marker(NewMarker):
    """A persisted marker."""

    id: str


class ManualEntry(BaseModel):
    """A typed-in location, using the same loose string cells as a table row."""

    name: str = ""
    address: str = ""
    lat: str = ""
    lng: str = ""


class AccountLimits(BaseModel):
    """Plan limits relevant to an import run."""

    model_config = ConfigDict(frozen=True)

    max_markers_per_map: Optional[int] = Field(
        default=None, ge=0, description="None means unlimited"
    )
    geocoding_allowed: bool = False
