"""Tests for Debouncer."""

import asyncio

from insights_chart.debounce import Debouncer


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


def test_runs_immediately_without_event_loop():
    counter = Counter()
    debouncer = Debouncer(counter, wait=10)

    debouncer.trigger()
    debouncer.trigger()

    assert counter.calls == 2
    assert not debouncer.pending


def test_burst_collapses_into_one_call():
    counter = Counter()

    async def scenario():
        debouncer = Debouncer(counter, wait=0.02)
        for _ in range(5):
            debouncer.trigger()
        assert debouncer.pending
        assert counter.calls == 0
        await asyncio.sleep(0.1)
        assert not debouncer.pending

    asyncio.run(scenario())
    assert counter.calls == 1


def test_trigger_restarts_window():
    counter = Counter()

    async def scenario():
        debouncer = Debouncer(counter, wait=0.05)
        debouncer.trigger()
        await asyncio.sleep(0.03)
        debouncer.trigger()
        await asyncio.sleep(0.03)
        assert counter.calls == 0
        await asyncio.sleep(0.1)

    asyncio.run(scenario())
    assert counter.calls == 1


def test_separate_bursts_each_run():
    counter = Counter()

    async def scenario():
        debouncer = Debouncer(counter, wait=0.01)
        debouncer.trigger()
        await asyncio.sleep(0.05)
        debouncer.trigger()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert counter.calls == 2


def test_cancel_drops_pending_call():
    counter = Counter()

    async def scenario():
        debouncer = Debouncer(counter, wait=0.01)
        debouncer.trigger()
        debouncer.cancel()
        assert not debouncer.pending
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert counter.calls == 0


def test_flush_runs_pending_call_now():
    counter = Counter()

    async def scenario():
        debouncer = Debouncer(counter, wait=10)
        debouncer.flush()
        assert counter.calls == 0
        debouncer.trigger()
        debouncer.flush()
        assert counter.calls == 1
        assert not debouncer.pending

    asyncio.run(scenario())
    assert counter.calls == 1
