import asyncio

from typemeteor.timer import Countdown


def test_ticks_until_callback_stops():
    calls = []

    def on_tick():
        calls.append(1)
        return len(calls) < 3

    async def scenario():
        countdown = Countdown(on_tick, interval=0.001)
        countdown.start()
        await asyncio.sleep(0.2)
        return countdown.running

    assert asyncio.run(scenario()) is False
    assert len(calls) == 3


def test_cancel_stops_ticking():
    calls = []

    async def scenario():
        countdown = Countdown(lambda: calls.append(1) or True, interval=0.05)
        countdown.start()
        countdown.cancel()
        await asyncio.sleep(0.15)
        return countdown.running

    assert asyncio.run(scenario()) is False
    assert calls == []


def test_start_is_idempotent():
    calls = []

    async def scenario():
        countdown = Countdown(lambda: calls.append(1) or len(calls) < 2, interval=0.01)
        countdown.start()
        first = countdown._task
        countdown.start()
        same = countdown._task is first
        await asyncio.sleep(0.1)
        return same

    assert asyncio.run(scenario()) is True
    assert len(calls) == 2
