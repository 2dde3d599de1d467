"""Tests for the geocoding address variant ladder."""

import pytest

from marker_import.core.geocoding.constants import CANADIAN_REGION_MARKERS
from marker_import.core.geocoding.variants import (
    build_address_variants,
    find_region,
    first_segment_with_region,
    strip_postal_code,
    truncate_after_region,
)


def variants(address: str, **kwargs):
    kwargs.setdefault("region_markers", CANADIAN_REGION_MARKERS)
    kwargs.setdefault("default_region", "QC")
    return build_address_variants(address, **kwargs)


class TestStripPostalCode:
    @pytest.mark.parametrize(
        "address,expected",
        [
            ("123 Main St QC H1A1A1", "123 Main St QC"),
            ("123 Main St, Montreal, QC H1A 1A1", "123 Main St, Montreal, QC"),
            ("500 Rue Sherbrooke, QC H2X-1Y1, Canada", "500 Rue Sherbrooke, QC"),
            ("1600 Pennsylvania Ave, Washington, DC 20500-0003", "1600 Pennsylvania Ave, Washington, DC"),
            ("12 Elm St", "12 Elm St"),
        ],
    )
    def test_strip(self, address, expected):
        assert strip_postal_code(address) == expected

    def test_keeps_leading_civic_number(self):
        """Test a five-digit civic number is not mistaken for a ZIP code."""
        assert strip_postal_code("12345 Yonge St, Toronto") == "12345 Yonge St, Toronto"


class TestRegionMarkers:
    def test_find_last_region(self):
        match = find_region("1 Ontario St, Toronto ON", CANADIAN_REGION_MARKERS)

        assert match is not None
        assert match.group(1) == "ON"

    def test_region_must_be_standalone(self):
        """Test markers inside words or hyphenated tokens are ignored."""
        assert find_region("10 QCX Road, MON-ON", CANADIAN_REGION_MARKERS) is None

    def test_truncate_after_region(self):
        assert (
            truncate_after_region("1 Wellington St, Ottawa ON K1A 0B1, Parliament", ["ON"])
            == "1 Wellington St, Ottawa ON"
        )

    def test_first_segment_uses_region_from_address(self):
        assert (
            first_segment_with_region("9 King St W, Toronto, ON", CANADIAN_REGION_MARKERS, "QC")
            == "9 King St W, ON"
        )

    def test_first_segment_without_region_uses_default(self):
        assert (
            first_segment_with_region("9 King St W, Springfield", CANADIAN_REGION_MARKERS, "QC")
            == "9 King St W, QC"
        )

    def test_first_segment_without_any_region(self):
        assert first_segment_with_region("9 King St W", (), None) is None


class TestBuildAddressVariants:
    """Unit tests for build_address_variants."""

    def test_ladder_for_postal_code_address(self):
        """Test the ladder goes from the original to more generic forms."""
        assert variants("123 Main St QC H1A1A1") == [
            "123 Main St QC H1A1A1",
            "123 Main St QC",
            "123 Main St, QC",
        ]

    def test_ladder_with_trailing_noise_after_region(self):
        assert variants("1 Wellington St, Ottawa ON K1A 0B1, Parliament Hill") == [
            "1 Wellington St, Ottawa ON K1A 0B1, Parliament Hill",
            "1 Wellington St, Ottawa ON",
            "1 Wellington St, ON",
        ]

    def test_original_address_comes_first(self):
        ladder = variants("  500 Rue Sherbrooke, Montréal, QC H2X 1Y1, Canada ")

        assert ladder[0] == "500 Rue Sherbrooke, Montréal, QC H2X 1Y1, Canada"
        assert "500 Rue Sherbrooke, Montréal, QC" in ladder
        assert ladder[-1] == "500 Rue Sherbrooke, QC"

    def test_variants_are_unique_case_insensitively(self):
        ladder = variants("7 Rue Principale, Gatineau, QC")

        lowered = [v.lower() for v in ladder]
        assert len(lowered) == len(set(lowered))

    def test_respects_max_variants(self):
        ladder = variants(
            "1 Wellington St, Ottawa ON K1A 0B1, Parliament Hill", max_variants=2
        )

        assert len(ladder) == 2

    def test_empty_address_has_no_variants(self):
        assert variants("   ") == []

    def test_without_region_configuration(self):
        assert build_address_variants("12 Elm St") == ["12 Elm St"]
