"""Test configuration and shared fakes."""

import os
from pathlib import Path
from typing import Any, Optional, Union
from unittest.mock import AsyncMock

import pytest
from pytest import Config

from marker_import.core.geocoding.constants import CANADIAN_REGION_MARKERS
from marker_import.core.logging import configure_logging
from marker_import.importer.pipeline import ImportPipeline
from marker_import.models.records import AccountLimits, Coordinates, NewMarker
from marker_import.models.run import ImporterOptions
from marker_import.storage.file_store import JsonFileMarkerStore

fixture = pytest.fixture

# One scripted provider answer: a coordinate, no match (None) or an error
Outcome = Union[Coordinates, None, Exception]


class FakeProvider:
    """Geocoding provider answering from a script and recording every query."""

    def __init__(
        self,
        name: str = "primary",
        responses: Optional[dict[str, Union[Outcome, list[Outcome]]]] = None,
        default: Outcome = None,
    ) -> None:
        self.name = name
        self.responses = dict(responses or {})
        self.default = default
        self.calls: list[str] = []

    async def geocode(self, query: str) -> list[Coordinates]:
        self.calls.append(query)
        outcome: Any = self.responses.get(query, self.default)
        if isinstance(outcome, list):
            # Consume scripted outcomes in order; the last one repeats
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if isinstance(outcome, Exception):
            raise outcome
        return [outcome] if outcome is not None else []


class ScriptedStore(JsonFileMarkerStore):
    """In-memory store whose writes can be scripted to fail."""

    def __init__(self, failures: Optional[list[Optional[Exception]]] = None) -> None:
        super().__init__()
        self.failures = list(failures or [])
        self.persist_calls = 0

    async def seed(self, account_id: str, map_id: str, *names_and_addresses: tuple[str, str]) -> None:
        for name, address in names_and_addresses:
            await super().persist(
                account_id, map_id, NewMarker(name=name, address=address, lat=45.0, lng=-73.0)
            )

    async def persist(self, account_id, map_id, marker):
        self.persist_calls += 1
        if self.failures:
            failure = self.failures.pop(0)
            if failure is not None:
                raise failure
        return await super().persist(account_id, map_id, marker)


class FakeAccountDirectory:
    """Account directory returning the same limits for every account."""

    def __init__(self, limits: Optional[AccountLimits] = None) -> None:
        self.limits = limits or AccountLimits(max_markers_per_map=None, geocoding_allowed=True)
        self.lookups: list[str] = []

    async def account_limits(self, account_id: str) -> AccountLimits:
        self.lookups.append(account_id)
        return self.limits


@fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@fixture
def options() -> ImporterOptions:
    """Importer options without rate limiting."""
    return ImporterOptions(
        min_request_interval=0,
        region_markers=CANADIAN_REGION_MARKERS,
        default_region="QC",
    )


@fixture
def primary() -> FakeProvider:
    return FakeProvider("primary")


@fixture
def fallback() -> FakeProvider:
    return FakeProvider("fallback")


@fixture
def rate_limiter() -> AsyncMock:
    """Pass-through stand-in for the geopy rate limiter that counts calls."""

    async def invoke(func, *args, **kwargs):
        return await func(*args, **kwargs)

    return AsyncMock(side_effect=invoke)


@fixture
def store() -> ScriptedStore:
    return ScriptedStore()


@fixture
def accounts() -> FakeAccountDirectory:
    return FakeAccountDirectory()


@fixture
def make_pipeline(store, accounts, primary, fallback, options):
    """Factory building a pipeline from the default fakes, with overrides."""

    def _make(**overrides: Any) -> ImportPipeline:
        kwargs: dict[str, Any] = {
            "store": store,
            "accounts": accounts,
            "primary": primary,
            "fallback": fallback,
            "options": options,
        }
        kwargs.update(overrides)
        return ImportPipeline(**kwargs)

    return _make


def pytest_configure(config: Config) -> None:
    """Configure pytest.

    Args:
        config: Pytest configuration object
    """
    os.environ["TESTING"] = "true"
    # Configure logging for test environment
    configure_logging(testing=True)
