"""
monitoring/scheduler.py - Periodic refresh loop.

Loop: sweep -> store SweepStats -> sleep interval -> repeat.

Sweeps are strictly serialized: the next one starts only after the
previous fan-out has drained and the sleep has elapsed. The loop runs as a
managed asyncio task; stop() interrupts the sleep and ends the loop after
the current sweep.
"""

import asyncio
from typing import Optional

from core.constants import DEFAULT_SLEEP_SECONDS
from core.logging import get_logger
from core.models import SweepStats
from discovery.registry import AddressRegistry
from monitoring.store import ObservationStore
from monitoring.sweep import BoundedSweepEngine, SweepResult

logger = get_logger(__name__)


class RefreshScheduler:
    """Drives BoundedSweepEngine on a fixed interval."""

    def __init__(
        self,
        engine: BoundedSweepEngine,
        registry: AddressRegistry,
        store: ObservationStore,
        interval_seconds: float = DEFAULT_SLEEP_SECONDS,
    ):
        if interval_seconds < 0:
            raise ValueError(f"interval_seconds must be >= 0, got {interval_seconds}")
        self.engine = engine
        self.registry = registry
        self.store = store
        self.interval_seconds = interval_seconds
        self.sweeps_completed = 0
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> SweepResult:
        """Run one sweep and publish its stats."""
        result = await self.engine.run_sweep(self.registry)
        self.store.write_sweep_stats(
            SweepStats(
                last_sweep_duration_seconds=result.duration_seconds,
                last_loaded_count=result.loaded,
            )
        )
        self.sweeps_completed += 1

        logger.info(
            f"Finished checking {result.loaded} wallets in {result.duration_seconds:.0f} seconds, "
            f"sleeping for {self.interval_seconds} seconds.",
            extra={
                "context": {
                    "loaded": result.loaded,
                    "duration_seconds": round(result.duration_seconds, 3),
                    "failed_reads": result.failed_reads,
                    "sweep": self.sweeps_completed,
                }
            },
        )

        stats_summary = getattr(self.engine.client, "get_stats_summary", None)
        if stats_summary is not None:
            logger.debug("RPC endpoint stats", extra={"context": stats_summary()})
        return result

    async def run(self, max_sweeps: Optional[int] = None) -> None:
        """
        Sweep until stopped.

        Args:
            max_sweeps: Stop after this many sweeps (None for no limit)
        """
        sweeps = 0
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("Sweep engine failed")
                raise

            sweeps += 1
            if max_sweeps is not None and sweeps >= max_sweeps:
                break

            await self._sleep()

        logger.info(
            "Refresh loop stopped",
            extra={"context": {"sweeps_completed": self.sweeps_completed}},
        )

    async def _sleep(self) -> None:
        """Wait for the interval, returning early on stop()."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), self.interval_seconds)
        except asyncio.TimeoutError:
            pass

    def start(self, max_sweeps: Optional[int] = None) -> asyncio.Task:
        """Spawn the loop as a background task."""
        if self.running:
            raise RuntimeError("Refresh loop already running")
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run(max_sweeps), name="refresh-scheduler")
        return self._task

    async def stop(self) -> None:
        """Signal the loop to end and wait for the current sweep to finish."""
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
