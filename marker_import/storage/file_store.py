"""JSON document marker store.

Layout on disk::

    {"<account_id>": {"<map_id>": [{"id": ..., "name": ..., ...}, ...]}}

Without a path the store lives purely in memory, which is what tests use.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union
from uuid import uuid4

from marker_import.core.logging import get_logger
from marker_import.errors import QuotaExceededError, StoreUnavailableError
from marker_import.models.records import ExistingMarkerFingerprint, Marker, NewMarker

logger = get_logger(__name__)


class JsonFileMarkerStore:
    """Marker store over a single JSON file."""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        max_markers_per_map: Optional[int] = None,
    ) -> None:
        """Initialize the store.

        Args:
            path: JSON file to load from and write to; None keeps data in memory
            max_markers_per_map: Optional hard limit enforced by the store itself
        """
        self.path = Path(path) if path else None
        self.max_markers_per_map = max_markers_per_map
        self._lock = asyncio.Lock()
        self._data: dict[str, dict[str, list[dict[str, Any]]]] = self._load()

    def _load(self) -> dict[str, dict[str, list[dict[str, Any]]]]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreUnavailableError(f"Cannot read marker store {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreUnavailableError(
                f"Marker store {self.path} is not a JSON object"
            )
        return data

    def _save(self) -> None:
        """Write the document atomically: temp file in the same directory, then replace."""
        if self.path is None:
            return
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreUnavailableError(
                f"Cannot write marker store {self.path}: {e}"
            ) from e

    def markers(self, account_id: str, map_id: str) -> list[Marker]:
        """All markers stored on a map."""
        return [
            Marker.model_validate(item)
            for item in self._data.get(account_id, {}).get(map_id, [])
        ]

    async def existing_markers(
        self, account_id: str, map_id: str
    ) -> list[ExistingMarkerFingerprint]:
        return [
            ExistingMarkerFingerprint(
                name=item.get("name", ""),
                address=item.get("address", ""),
                lat=item.get("lat"),
                lng=item.get("lng"),
            )
            for item in self._data.get(account_id, {}).get(map_id, [])
        ]

    async def persist(self, account_id: str, map_id: str, marker: NewMarker) -> Marker:
        async with self._lock:
            items = self._data.setdefault(account_id, {}).setdefault(map_id, [])
            if (
                self.max_markers_per_map is not None
                and len(items) >= self.max_markers_per_map
            ):
                raise QuotaExceededError(
                    f"Map {map_id} already holds {len(items)} markers"
                )

            stored = Marker(id=uuid4().hex, **marker.model_dump())
            items.append(stored.model_dump(exclude_none=True))
            try:
                self._save()
            except StoreUnavailableError:
                items.pop()
                raise

        logger.debug(
            "marker_stored", account_id=account_id, map_id=map_id, marker_id=stored.id
        )
        return stored
