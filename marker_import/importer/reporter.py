"""Run state and progress publishing."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from marker_import.core.logging import get_logger
from marker_import.models.records import Marker, SkipRecord
from marker_import.models.run import RunPhase, RunProgress, RunResult, RunStatus

logger = get_logger(__name__)

ProgressCallback = Callable[[RunProgress], Union[None, Awaitable[None]]]


@dataclass
class RunState:
    """Single owned, mutable state of one import run.

    Components update it in place; the reporter turns it into immutable
    RunProgress snapshots and the final RunResult.
    """

    run_id: str
    phase: RunPhase = RunPhase.PARSING
    processed: int = 0
    total: int = 0
    current_label: str = ""

    markers: list[Marker] = field(default_factory=list)
    skips: list[SkipRecord] = field(default_factory=list)
    internal_duplicates: int = 0
    external_duplicates: int = 0
    geocode_failures: int = 0
    geocoding_denied: int = 0
    persist_failures: int = 0
    ceiling_reached: bool = False
    cancelled: bool = False
    fatal: bool = False
    errors: list[str] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)

    @property
    def markers_added(self) -> int:
        return len(self.markers)

    def enter_phase(self, phase: RunPhase, total: int = 0) -> None:
        self.phase = phase
        self.processed = 0
        self.total = total
        self.current_label = ""

    def add_error(self, message: str) -> None:
        if message not in self.errors:
            self.errors.append(message)

    def snapshot(self) -> RunProgress:
        return RunProgress(
            run_id=self.run_id,
            phase=self.phase,
            processed=self.processed,
            total=self.total,
            current_label=self.current_label,
        )

    def status(self) -> RunStatus:
        """Terminal status derived from what happened during the run."""
        if self.fatal:
            return RunStatus.FAILED
        if self.cancelled:
            return RunStatus.CANCELLED
        if (
            self.ceiling_reached
            or self.geocode_failures
            or self.geocoding_denied
            or self.persist_failures
        ):
            return RunStatus.PARTIAL
        return RunStatus.COMPLETED

    def to_result(self) -> RunResult:
        return RunResult(
            run_id=self.run_id,
            status=self.status(),
            markers_added=self.markers_added,
            duplicates_skipped=self.internal_duplicates + self.external_duplicates,
            internal_duplicates=self.internal_duplicates,
            external_duplicates=self.external_duplicates,
            rows_skipped=len(self.skips),
            geocode_failures=self.geocode_failures,
            geocoding_denied=self.geocoding_denied,
            persist_failures=self.persist_failures,
            ceiling_reached=self.ceiling_reached,
            cancelled=self.cancelled,
            errors=list(self.errors),
            skips=list(self.skips),
            markers=list(self.markers),
            duration_seconds=round(time.monotonic() - self.started_at, 3),
        )


class ProgressReporter:
    """Publishes RunProgress snapshots to an optional caller callback."""

    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self.callback = callback
        self.published = 0

    async def publish(self, state: RunState) -> RunProgress:
        """Emit one snapshot of ``state``.

        The callback may be a plain function or a coroutine function. A
        failing callback is logged and never stops the run.
        """
        snapshot = state.snapshot()
        self.published += 1
        if self.callback is None:
            return snapshot

        try:
            result: Any = self.callback(snapshot)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.warning(
                "progress_callback_failed",
                run_id=state.run_id,
                phase=snapshot.phase.value,
                error=str(e),
            )
        return snapshot

    async def checkpoint(
        self, state: RunState, label: Optional[str] = None, advance: bool = False
    ) -> RunProgress:
        """Update the current label and/or processed count, then publish."""
        if label is not None:
            state.current_label = label
        if advance:
            state.processed += 1
        return await self.publish(state)
