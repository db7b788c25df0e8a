"""
monitoring/store.py - Latest observation per watched address.

One Observation per registry target, same ordinal, never deleted.

LOCKING CONTRACT:
- A single lock covers the whole table and the sweep stats.
- Writers hold it only while copying one address's values in.
- read() holds it for one linear copy of the table, no I/O.
- Fields of one Observation may mix two sweeps while a sweep is in
  flight; each field is independently meaningful.
"""

import threading
from dataclasses import dataclass
from typing import Any, Sequence, Tuple

from core.models import OBSERVATION_FIELDS, Observation, SweepStats, WatchTarget


@dataclass(frozen=True)
class StoreSnapshot:
    """Consistent copy of the store taken under the lock."""
    targets: Tuple[WatchTarget, ...]
    observations: Tuple[Observation, ...]
    stats: SweepStats

    def __len__(self) -> int:
        return len(self.targets)


class ObservationStore:
    """Shared, concurrently readable table of observations."""

    def __init__(self, targets: Sequence[WatchTarget]):
        self._targets = tuple(targets)
        self._observations = [Observation() for _ in self._targets]
        self._stats = SweepStats()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._targets)

    @property
    def targets(self) -> Tuple[WatchTarget, ...]:
        return self._targets

    def read(self) -> StoreSnapshot:
        """Copy every observation and the sweep stats."""
        with self._lock:
            observations = tuple(o.copy() for o in self._observations)
            stats = self._stats
        return StoreSnapshot(targets=self._targets, observations=observations, stats=stats)

    def get(self, index: int) -> Observation:
        """Copy of a single observation."""
        with self._lock:
            return self._observations[index].copy()

    def write_field(self, index: int, field: str, value: Any) -> None:
        """
        Overwrite one field of one observation.

        Raises:
            KeyError: If field is not an Observation field
            IndexError: If index is out of range
        """
        if field not in OBSERVATION_FIELDS:
            raise KeyError(field)
        with self._lock:
            setattr(self._observations[index], field, value)

    def write_observation(self, index: int, **values: Any) -> None:
        """
        Overwrite a set of fields of one observation in one critical section.

        Raises:
            KeyError: If any key is not an Observation field
            IndexError: If index is out of range
        """
        unknown = set(values) - OBSERVATION_FIELDS
        if unknown:
            raise KeyError(", ".join(sorted(unknown)))
        with self._lock:
            observation = self._observations[index]
            for field, value in values.items():
                setattr(observation, field, value)

    def write_sweep_stats(self, stats: SweepStats) -> None:
        with self._lock:
            self._stats = stats
