"""Tests for plans and the static account directory."""

import pytest

from marker_import.importer.ports import AccountDirectory
from marker_import.models.records import AccountLimits
from marker_import.storage.plans import PLANS, StaticAccountDirectory, get_plan


class TestPlans:
    def test_plan_limits(self):
        assert get_plan("freemium").limits() == AccountLimits(
            max_markers_per_map=50, geocoding_allowed=False
        )
        assert get_plan("Starter").limits().max_markers_per_map == 500
        assert get_plan("professional").limits().max_markers_per_map == 1500
        assert get_plan("enterprise").limits().max_markers_per_map == 3000

    def test_unlimited_plan(self):
        limits = get_plan("unlimited").limits()

        assert limits.max_markers_per_map is None
        assert limits.geocoding_allowed is True

    def test_unknown_plan(self):
        with pytest.raises(KeyError, match="Unknown plan"):
            get_plan("platinum")

    def test_only_freemium_lacks_geocoding(self):
        assert [p.id for p in PLANS.values() if not p.geocoding] == ["freemium"]


class TestStaticAccountDirectory:
    @pytest.mark.asyncio
    async def test_known_and_default_accounts(self):
        directory = StaticAccountDirectory({"acme": "professional"}, default_plan="freemium")

        assert (await directory.account_limits("acme")).max_markers_per_map == 1500
        assert (await directory.account_limits("someone")).geocoding_allowed is False
        assert isinstance(directory, AccountDirectory)

    def test_rejects_unknown_plan(self):
        with pytest.raises(KeyError):
            StaticAccountDirectory({"acme": "gold"})
