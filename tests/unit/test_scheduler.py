"""
tests/unit/test_scheduler.py - RefreshScheduler tests.
"""

import asyncio

import pytest

from conftest import StubChainClient, make_target

from discovery.registry import AddressRegistry
from monitoring.scheduler import RefreshScheduler
from monitoring.store import ObservationStore
from monitoring.sweep import BoundedSweepEngine


def build(client, size=5, interval=0, concurrency=2):
    registry = AddressRegistry(tuple(make_target(i) for i in range(size)))
    store = ObservationStore(registry.snapshot())
    engine = BoundedSweepEngine(client, store, concurrency=concurrency)
    scheduler = RefreshScheduler(engine, registry, store, interval_seconds=interval)
    return scheduler, store


class TestSweepSerialization:

    @pytest.mark.asyncio
    async def test_sweeps_never_overlap_with_zero_sleep(self):
        events = []
        scheduler = None

        def observer(event, method, address):
            events.append((event, scheduler.sweeps_completed))

        client = StubChainClient(delays={"code_at": 0.002}, observer=observer)
        scheduler, _ = build(client, size=6, interval=0)

        await scheduler.run(max_sweeps=3)

        assert scheduler.sweeps_completed == 3
        for sweep in range(2):
            last_end = max(i for i, e in enumerate(events) if e == ("end", sweep))
            first_next_start = min(i for i, e in enumerate(events) if e == ("start", sweep + 1))
            assert last_end < first_next_start

    @pytest.mark.asyncio
    async def test_stats_written_after_each_sweep(self):
        scheduler, store = build(StubChainClient(), size=4)

        await scheduler.run(max_sweeps=1)

        stats = store.read().stats
        assert stats.last_loaded_count == 4
        assert stats.last_sweep_duration_seconds >= 0


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_stop_interrupts_sleep(self):
        scheduler, _ = build(StubChainClient(), interval=3600)

        task = scheduler.start()
        while scheduler.sweeps_completed == 0:
            await asyncio.sleep(0.001)
        assert scheduler.running

        await asyncio.wait_for(scheduler.stop(), timeout=1.0)

        assert task.done()
        assert not scheduler.running
        assert scheduler.sweeps_completed == 1

    @pytest.mark.asyncio
    async def test_stop_waits_for_in_flight_sweep(self):
        gate = asyncio.Event()
        client = StubChainClient(gate=gate)
        scheduler, store = build(client, interval=3600)

        scheduler.start()
        while client.in_flight == 0:
            await asyncio.sleep(0.001)

        stopping = asyncio.create_task(scheduler.stop())
        await asyncio.sleep(0.01)
        assert not stopping.done()

        gate.set()
        await asyncio.wait_for(stopping, timeout=1.0)
        assert scheduler.sweeps_completed == 1
        assert store.read().stats.last_loaded_count == 5

    @pytest.mark.asyncio
    async def test_start_twice_raises(self):
        scheduler, _ = build(StubChainClient(), interval=3600)
        scheduler.start()
        try:
            with pytest.raises(RuntimeError):
                scheduler.start()
        finally:
            await scheduler.stop()

    @pytest.mark.asyncio
    async def test_engine_malfunction_ends_loop(self):
        class BrokenClient(StubChainClient):
            async def nonce_at(self, address, block=None, timeout=None):
                raise RuntimeError("bug")

        scheduler, _ = build(BrokenClient(), interval=0)

        with pytest.raises(RuntimeError):
            await scheduler.run()

    def test_negative_interval_rejected(self):
        registry = AddressRegistry((make_target(0),))
        store = ObservationStore(registry.snapshot())
        engine = BoundedSweepEngine(StubChainClient(), store)
        with pytest.raises(ValueError):
            RefreshScheduler(engine, registry, store, interval_seconds=-1)
