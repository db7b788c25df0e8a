"""
Pytest configuration and fixtures for exporter tests.
"""

import asyncio
import sys
from pathlib import Path
from typing import Callable, Dict, Optional, Set, Tuple

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.constants import ErrorCode  # noqa: E402
from core.exceptions import FetchError  # noqa: E402
from core.models import WatchTarget  # noqa: E402
from core.validators import normalize_address  # noqa: E402


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def make_target(index: int, name: Optional[str] = None) -> WatchTarget:
    """Deterministic watch target #index."""
    address = "0x" + f"{index + 1:040x}"
    return WatchTarget(
        name=name or f"wallet{index}",
        address=address,
        rpc_address=normalize_address(address),
    )


class StubChainClient:
    """
    In-memory chain client.

    - balances / nonces / codes: per rpc_address values (defaults 0 / 0 / b"")
    - failing: set of (method, rpc_address) pairs raising FetchError
    - gate: when set, every call waits for the event first
    - delays: per method seconds to sleep before answering
    - observer: called with (event, method, address) on call start/end
    """

    def __init__(
        self,
        balances: Optional[Dict[str, int]] = None,
        pending_balances: Optional[Dict[str, int]] = None,
        nonces: Optional[Dict[str, int]] = None,
        pending_nonces: Optional[Dict[str, int]] = None,
        codes: Optional[Dict[str, bytes]] = None,
        failing: Optional[Set[Tuple[str, str]]] = None,
        gate: Optional[asyncio.Event] = None,
        delays: Optional[Dict[str, float]] = None,
        observer: Optional[Callable[[str, str, str], None]] = None,
    ):
        self.balances = balances or {}
        self.pending_balances = pending_balances
        self.nonces = nonces or {}
        self.pending_nonces = pending_nonces
        self.codes = codes or {}
        self.failing = failing or set()
        self.gate = gate
        self.delays = delays or {}
        self.observer = observer
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls = []

    async def _answer(self, method: str, address: str, value):
        self.calls.append((method, address))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        if self.observer:
            self.observer("start", method, address)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if method in self.delays:
                await asyncio.sleep(self.delays[method])
            else:
                await asyncio.sleep(0)
            if (method, address) in self.failing:
                raise FetchError(f"stub failure: {method}", ErrorCode.INFRA_RPC_ERROR)
            return value
        finally:
            self.in_flight -= 1
            if self.observer:
                self.observer("end", method, address)

    async def balance_at(self, address, block=None, timeout=None):
        return await self._answer("balance_at", address, self.balances.get(address, 0))

    async def pending_balance_at(self, address, timeout=None):
        source = self.balances if self.pending_balances is None else self.pending_balances
        return await self._answer("pending_balance_at", address, source.get(address, 0))

    async def nonce_at(self, address, block=None, timeout=None):
        return await self._answer("nonce_at", address, self.nonces.get(address, 0))

    async def pending_nonce_at(self, address, timeout=None):
        source = self.nonces if self.pending_nonces is None else self.pending_nonces
        return await self._answer("pending_nonce_at", address, source.get(address, 0))

    async def code_at(self, address, block=None, timeout=None):
        return await self._answer("code_at", address, self.codes.get(address, b""))


@pytest.fixture
def targets():
    return tuple(make_target(i) for i in range(3))


@pytest.fixture
def stub_client():
    return StubChainClient()
