"""
monitoring/render.py - Exposition text for the /metrics route.

One block of per-address lines per target in registry order, then the
aggregate lines:

    <prefix>eth_balance{name="<name>",address="<address>"} <decimal>
    ...
    <prefix>eth_contract_addresses_total <int>
    <prefix>eth_eoa_addresses_total <int>
    <prefix>eth_load_seconds <float, 2 decimals>
    <prefix>eth_loaded_addresses <int>
    <prefix>eth_total_addresses <int>

Rendering is a pure function of one store snapshot. Missing balances render
as 0.
"""

from typing import List

from core.constants import (
    DEFAULT_METRIC_PREFIX,
    METRIC_CONTRACTS_TOTAL,
    METRIC_EOAS_TOTAL,
    METRIC_LOAD_SECONDS,
    METRIC_LOADED_ADDRESSES,
    METRIC_TOTAL_ADDRESSES,
    PER_ADDRESS_METRICS,
)
from monitoring.store import ObservationStore, StoreSnapshot


def _or_zero(value: str) -> str:
    return value if value else "0"


def render_snapshot(snapshot: StoreSnapshot, prefix: str = DEFAULT_METRIC_PREFIX) -> str:
    """
    Render a store snapshot as exposition text.

    Args:
        snapshot: Result of ObservationStore.read()
        prefix: Literal metric name prefix

    Returns:
        Newline-joined lines with a trailing newline
    """
    lines: List[str] = []
    contracts = 0
    eoas = 0

    for target, obs in zip(snapshot.targets, snapshot.observations):
        labels = f'{{name="{target.name}",address="{target.address}"}}'

        if obs.is_contract:
            contracts += 1
        else:
            eoas += 1

        values = (
            _or_zero(obs.balance),
            _or_zero(obs.balance_pending),
            f"{obs.nonce:d}",
            f"{obs.nonce_pending:d}",
            "1" if obs.is_contract else "0",
            f"{obs.code_size:d}",
            f"{obs.last_updated:d}",
        )
        for metric, value in zip(PER_ADDRESS_METRICS, values):
            lines.append(f"{prefix}{metric}{labels} {value}")

    stats = snapshot.stats
    lines.append(f"{prefix}{METRIC_CONTRACTS_TOTAL} {contracts}")
    lines.append(f"{prefix}{METRIC_EOAS_TOTAL} {eoas}")
    lines.append(f"{prefix}{METRIC_LOAD_SECONDS} {stats.last_sweep_duration_seconds:0.2f}")
    lines.append(f"{prefix}{METRIC_LOADED_ADDRESSES} {stats.last_loaded_count}")
    lines.append(f"{prefix}{METRIC_TOTAL_ADDRESSES} {len(snapshot.targets)}")

    return "\n".join(lines) + "\n"


class MetricsRenderer:
    """Renders the current store contents on demand."""

    def __init__(self, store: ObservationStore, prefix: str = DEFAULT_METRIC_PREFIX):
        self.store = store
        self.prefix = prefix

    def render(self) -> str:
        return render_snapshot(self.store.read(), self.prefix)
