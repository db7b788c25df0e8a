"""
core/models.py - Core data models.

WatchTarget: one configured (name, address) pair, immutable.
Observation: latest fetched state for one target, mutable, owned by
ObservationStore.
SweepStats: aggregate figures of the last completed sweep.

Balances are decimal strings (never float). An empty balance string is the
failure placeholder of a sweep; it renders as "0".
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, FrozenSet


@dataclass(frozen=True)
class WatchTarget:
    """A named chain address configured for periodic observation."""
    name: str
    address: str       # configured text, trimmed; used as the metric label
    rpc_address: str   # normalized 0x + 40 lowercase hex digits

    @property
    def label_key(self) -> tuple[str, str]:
        return (self.name, self.address)


@dataclass
class Observation:
    """Latest state snapshot for one watch target."""
    balance: str = "0"
    balance_pending: str = "0"
    nonce: int = 0
    nonce_pending: int = 0
    is_contract: bool = False
    code_size: int = 0
    last_updated: int = 0

    def copy(self) -> "Observation":
        return replace(self)


OBSERVATION_FIELDS: FrozenSet[str] = frozenset(f.name for f in fields(Observation))

# Values written for a field whose fetch failed in the current sweep
FAILURE_PLACEHOLDERS: Dict[str, Any] = {
    "balance": "",
    "balance_pending": "",
    "nonce": 0,
    "nonce_pending": 0,
    "is_contract": False,
    "code_size": 0,
}


@dataclass(frozen=True)
class SweepStats:
    """Aggregate figures of the last completed sweep."""
    last_sweep_duration_seconds: float = 0.0
    last_loaded_count: int = 0
