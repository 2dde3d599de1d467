"""Contracts for the collaborators the pipeline depends on."""

from typing import Protocol, Sequence, runtime_checkable

from marker_import.models.records import (
    AccountLimits,
    ExistingMarkerFingerprint,
    Marker,
    NewMarker,
)


@runtime_checkable
class MarkerStore(Protocol):
    """Persistent marker storage.

    ``persist`` must fail with a subclass of StoreError so the pipeline can
    tell quota, permission, timeout and connectivity problems apart.
    """

    async def existing_markers(
        self, account_id: str, map_id: str
    ) -> Sequence[ExistingMarkerFingerprint]: ...

    async def persist(self, account_id: str, map_id: str, marker: NewMarker) -> Marker: ...


@runtime_checkable
class AccountDirectory(Protocol):
    """Looks up the plan limits of an account."""

    async def account_limits(self, account_id: str) -> AccountLimits: ...
