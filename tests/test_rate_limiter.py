import asyncio

import pytest

from linnworks_profit.integrations.rate_limiter import RequestPacer
from tests.conftest import run


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_grants_are_spaced_cumulatively(recording_sleep):
    pacer = RequestPacer(slots=5, spacing_seconds=0.2, sleep=recording_sleep, clock=FakeClock())
    started = []

    async def task(name):
        async with pacer.slot():
            started.append(name)

    async def main():
        await asyncio.gather(*(task(i) for i in range(4)))

    run(main())

    assert started == [0, 1, 2, 3]
    assert recording_sleep.delays == pytest.approx([0.2, 0.4, 0.6])


def test_no_wait_once_spacing_has_elapsed(recording_sleep):
    clock = FakeClock()
    pacer = RequestPacer(slots=1, spacing_seconds=0.2, sleep=recording_sleep, clock=clock)

    async def main():
        async with pacer.slot():
            pass
        clock.now += 1.0
        async with pacer.slot():
            pass

    run(main())

    assert recording_sleep.delays == []


def test_reset_lets_next_grant_start_immediately(recording_sleep):
    pacer = RequestPacer(slots=2, spacing_seconds=0.2, sleep=recording_sleep, clock=FakeClock())

    async def main():
        async with pacer.slot():
            pass
        pacer.reset()
        async with pacer.slot():
            pass

    run(main())

    assert recording_sleep.delays == []


def test_slots_bound_concurrency(recording_sleep):
    pacer = RequestPacer(slots=2, spacing_seconds=0, sleep=recording_sleep)
    active = 0
    peak = 0

    async def task():
        nonlocal active, peak
        async with pacer.slot():
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0)
            active -= 1

    async def main():
        await asyncio.gather(*(task() for _ in range(6)))

    run(main())

    assert peak == 2


def test_rejects_zero_slots():
    with pytest.raises(ValueError):
        RequestPacer(slots=0, spacing_seconds=0.2)
