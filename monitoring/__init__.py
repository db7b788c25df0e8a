"""
Monitoring package: refresh engine and metrics exposition.

Modules:
- store: ObservationStore, the shared latest-state table
- sweep: BoundedSweepEngine, one bounded-concurrency refresh pass
- scheduler: RefreshScheduler, the periodic sweep loop
- render: MetricsRenderer, exposition text
- server: aiohttp /metrics route
"""

from monitoring.render import MetricsRenderer, render_snapshot
from monitoring.scheduler import RefreshScheduler
from monitoring.server import MetricsServer, create_app
from monitoring.store import ObservationStore, StoreSnapshot
from monitoring.sweep import BoundedSweepEngine, SweepResult

__all__ = [
    "BoundedSweepEngine",
    "MetricsRenderer",
    "MetricsServer",
    "ObservationStore",
    "RefreshScheduler",
    "StoreSnapshot",
    "SweepResult",
    "create_app",
    "render_snapshot",
]
