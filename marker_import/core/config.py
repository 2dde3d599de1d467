"""Application configuration."""

from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from marker_import.core.geocoding.constants import CANADIAN_REGION_MARKERS
from marker_import.models.run import ImporterOptions

SUPPORTED_PROVIDERS = {"nominatim", "mapbox", "arcgis"}


class Settings(BaseSettings):
    """
    Application settings.

    Environment variables will be loaded and validated using Pydantic.
    """

    app_name: str = "Marker Import"
    version: str = "0.1.0"

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    # Redis Settings (geocoding cache is disabled without a URL)
    REDIS_URL: Optional[str] = None
    GEOCODING_CACHE_TTL: int = Field(default=2592000, ge=0)  # 30 days

    # Geocoding providers
    GEOCODING_PRIMARY_PROVIDER: str = "nominatim"
    GEOCODING_FALLBACK_PROVIDER: Optional[str] = "mapbox"
    GEOCODING_TIMEOUT: int = Field(default=10, gt=0)
    GEOCODING_TIMEOUT_RETRIES: int = Field(default=1, ge=0)
    GEOCODING_COUNTRY_CODES: list[str] = ["ca"]
    NOMINATIM_USER_AGENT: str = "marker-import/0.1"
    MAPBOX_API_KEY: Optional[str] = None

    # Rate limiting between records that call out to a provider
    GEOCODING_MIN_DELAY: float = Field(default=1.0, ge=0)

    # Address variant ladder
    GEOCODING_REGION_MARKERS: list[str] = Field(
        default_factory=lambda: list(CANADIAN_REGION_MARKERS)
    )
    GEOCODING_DEFAULT_REGION: Optional[str] = "QC"
    GEOCODING_MAX_VARIANTS: int = Field(default=4, ge=1)

    # Persistence
    PERSIST_TIMEOUT_RETRIES: int = Field(default=1, ge=0)

    # CLI reference store and plan
    MARKER_STORE_PATH: str = "markers.json"
    DEFAULT_PLAN: str = "starter"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra fields in environment
    )

    @field_validator("GEOCODING_PRIMARY_PROVIDER", "GEOCODING_FALLBACK_PROVIDER")
    @classmethod
    def normalize_provider(cls, value: Optional[str]) -> Optional[str]:
        """Lowercase provider names; an empty fallback disables it."""
        if value is None:
            return None
        value = value.strip().lower()
        if not value:
            return None
        if value not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unknown geocoding provider '{value}', "
                f"expected one of {sorted(SUPPORTED_PROVIDERS)}"
            )
        return value

    @model_validator(mode="after")
    def drop_duplicate_fallback(self) -> "Settings":
        """A fallback identical to the primary would only repeat the ladder."""
        if self.GEOCODING_FALLBACK_PROVIDER == self.GEOCODING_PRIMARY_PROVIDER:
            self.GEOCODING_FALLBACK_PROVIDER = None
        return self

    def importer_options(self) -> ImporterOptions:
        """Build the pipeline options from these settings."""
        return ImporterOptions(
            min_request_interval=self.GEOCODING_MIN_DELAY,
            timeout_retries=self.GEOCODING_TIMEOUT_RETRIES,
            persist_timeout_retries=self.PERSIST_TIMEOUT_RETRIES,
            region_markers=tuple(m.upper() for m in self.GEOCODING_REGION_MARKERS),
            default_region=self.GEOCODING_DEFAULT_REGION,
            max_variants=self.GEOCODING_MAX_VARIANTS,
        )


# Create settings instance
settings = Settings()
