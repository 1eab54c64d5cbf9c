import asyncio

from server.clock import TimeoutClock


class FakeCoordinator:
    def __init__(self, fail_first: bool = False):
        self.calls = 0
        self.fail_first = fail_first

    async def expire_turns(self):
        self.calls += 1
        if self.fail_first and self.calls == 1:
            raise RuntimeError("store unavailable")
        return 1


async def test_tick_returns_expired_count():
    clock = TimeoutClock(FakeCoordinator(), interval=60)

    assert await clock.tick() == 1


async def test_tick_swallows_errors(caplog):
    coordinator = FakeCoordinator(fail_first=True)
    clock = TimeoutClock(coordinator, interval=60)

    assert await clock.tick() == 0
    assert await clock.tick() == 1
    assert "Timeout clock tick failed" in caplog.text


async def test_clock_loop_ticks_until_stopped():
    coordinator = FakeCoordinator(fail_first=True)
    clock = TimeoutClock(coordinator, interval=0.01)

    clock.start()
    assert clock.running
    await asyncio.sleep(0.1)
    await clock.stop()

    assert not clock.running
    assert coordinator.calls >= 2
    calls = coordinator.calls
    await asyncio.sleep(0.05)
    assert coordinator.calls == calls
