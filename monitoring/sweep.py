"""
monitoring/sweep.py - One bounded-concurrency refresh pass.

For every watch target one task is scheduled; a semaphore lets at most
`concurrency` of them talk to the chain at once. Each task:

1. Sets one deadline (fetch_timeout_seconds) shared by all of its reads
2. Reads balance, pending balance, nonce, pending nonce and code, each
   independently
3. Scales balances to ether exactly (Decimal)
4. Derives is_contract / code_size from the code
5. Writes the field set into the store; a failed read writes its
   placeholder, and last_updated moves only if some read succeeded

FetchError is absorbed per field. Anything else is an engine malfunction
and propagates out of run_sweep.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from core.constants import DEFAULT_CONCURRENCY, DEFAULT_FETCH_TIMEOUT_SECONDS, ErrorCode
from core.exceptions import FetchError
from core.logging import get_logger
from core.models import FAILURE_PLACEHOLDERS, WatchTarget
from core.units import format_ether
from monitoring.store import ObservationStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class SweepResult:
    """Outcome of one sweep."""
    duration_seconds: float
    loaded: int
    failed_reads: int = 0


class BoundedSweepEngine:
    """
    Runs full refresh passes over a registry.

    The client must provide balance_at, pending_balance_at, nonce_at,
    pending_nonce_at and code_at coroutines accepting a `timeout` keyword
    (see chains.providers.RPCProvider).
    """

    def __init__(
        self,
        client: Any,
        store: ObservationStore,
        concurrency: int = DEFAULT_CONCURRENCY,
        fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.client = client
        self.store = store
        self.concurrency = concurrency
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self.clock = clock

        # Observability of the fan-out
        self.in_flight = 0
        self.max_in_flight = 0
        self._failed_reads = 0

    async def run_sweep(self, registry: Iterable[WatchTarget]) -> SweepResult:
        """
        Refresh every target once and wait for all tasks.

        Args:
            registry: AddressRegistry (or any iterable of targets in store order)

        Returns:
            SweepResult with elapsed wall time and count processed
        """
        targets = tuple(registry)
        if len(targets) != len(self.store):
            raise ValueError(
                f"Registry has {len(targets)} targets but store has {len(self.store)}"
            )

        semaphore = asyncio.Semaphore(self.concurrency)
        self._failed_reads = 0
        start = time.perf_counter()

        logger.info(
            f"Checking {len(targets)} wallets...",
            extra={"context": {"addresses": len(targets), "concurrency": self.concurrency}},
        )

        tasks = [
            asyncio.create_task(self._run_task(semaphore, index, target))
            for index, target in enumerate(targets)
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            # No task may outlive the sweep, even a failed one
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return SweepResult(
            duration_seconds=time.perf_counter() - start,
            loaded=len(targets),
            failed_reads=self._failed_reads,
        )

    async def _run_task(
        self,
        semaphore: asyncio.Semaphore,
        index: int,
        target: WatchTarget,
    ) -> None:
        async with semaphore:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            try:
                await self.refresh_target(index, target)
            finally:
                self.in_flight -= 1

    async def refresh_target(self, index: int, target: WatchTarget) -> Dict[str, Any]:
        """
        Fetch one target's state and write it into the store.

        Returns:
            The field set written
        """
        deadline = asyncio.get_running_loop().time() + self.fetch_timeout_seconds
        address = target.rpc_address

        balance = await self._read(target, "balance", deadline, self.client.balance_at, address)
        balance_pending = await self._read(
            target, "balance_pending", deadline, self.client.pending_balance_at, address
        )
        nonce = await self._read(target, "nonce", deadline, self.client.nonce_at, address)
        nonce_pending = await self._read(
            target, "nonce_pending", deadline, self.client.pending_nonce_at, address
        )
        code = await self._read(target, "code", deadline, self.client.code_at, address)

        values: Dict[str, Any] = dict(FAILURE_PLACEHOLDERS)
        succeeded = 0

        if balance is not None:
            values["balance"] = format_ether(balance)
            succeeded += 1
        if balance_pending is not None:
            values["balance_pending"] = format_ether(balance_pending)
            succeeded += 1
        if nonce is not None:
            values["nonce"] = nonce
            succeeded += 1
        if nonce_pending is not None:
            values["nonce_pending"] = nonce_pending
            succeeded += 1
        if code is not None:
            values["code_size"] = len(code)
            values["is_contract"] = len(code) > 0
            succeeded += 1

        if succeeded:
            values["last_updated"] = int(self.clock())

        self.store.write_observation(index, **values)
        return values

    async def _read(
        self,
        target: WatchTarget,
        field: str,
        deadline: float,
        fetch: Callable[..., Awaitable[Any]],
        address: str,
    ) -> Optional[Any]:
        """Run one read under the task deadline; None if it failed."""
        remaining = deadline - asyncio.get_running_loop().time()
        try:
            if remaining <= 0:
                raise FetchError(
                    f"Deadline exceeded before reading {field}",
                    ErrorCode.INFRA_TIMEOUT,
                )
            return await asyncio.wait_for(fetch(address, timeout=remaining), remaining)
        except asyncio.TimeoutError:
            error = FetchError(f"Timed out reading {field}", ErrorCode.INFRA_TIMEOUT)
        except FetchError as e:
            error = e

        self._failed_reads += 1
        logger.warning(
            f"Error fetching {field} for address: {target.address}",
            extra={
                "context": {
                    "name": target.name,
                    "address": target.address,
                    "field": field,
                    "error_code": error.code.value,
                    "error": error.message,
                }
            },
        )
        return None
