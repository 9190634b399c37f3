"""Tests for the FakeTimerScheduler test helper."""

import pytest

from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.fake_timer_scheduler import FakeTimerScheduler


@pytest.fixture
def clock() -> FakeTimeAuthority:
    return FakeTimeAuthority()


@pytest.fixture
def timers(clock: FakeTimeAuthority) -> FakeTimerScheduler:
    return FakeTimerScheduler(clock)


class TestFakeTimerScheduler:
    @pytest.mark.asyncio
    async def test_fires_in_due_order_at_due_time(
        self, timers: FakeTimerScheduler, clock: FakeTimeAuthority
    ) -> None:
        start = clock.now_ms()
        fired: list[tuple[str, int]] = []

        async def record(name: str) -> None:
            fired.append((name, clock.now_ms() - start))

        timers.call_later(300, lambda: record("late"))
        timers.call_later(100, lambda: record("early"))
        timers.call_later(100, lambda: record("early-second"))

        await timers.advance(1_000)

        assert fired == [("early", 100), ("early-second", 100), ("late", 300)]
        assert clock.now_ms() - start == 1_000

    @pytest.mark.asyncio
    async def test_not_due_does_not_fire(self, timers: FakeTimerScheduler) -> None:
        calls: list[int] = []

        async def record() -> None:
            calls.append(1)

        timers.call_later(500, record)
        await timers.advance(499)

        assert calls == []
        assert timers.pending_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_timer_never_fires(self, timers: FakeTimerScheduler) -> None:
        calls: list[int] = []

        async def record() -> None:
            calls.append(1)

        handle = timers.call_later(10, record)
        handle.cancel()
        await timers.advance(100)

        assert calls == []
        assert handle.cancelled

    @pytest.mark.asyncio
    async def test_repeating_timer(self, timers: FakeTimerScheduler) -> None:
        calls: list[int] = []

        async def record() -> None:
            calls.append(1)

        handle = timers.call_repeating(1_000, record)
        await timers.advance(3_500)
        handle.cancel()
        await timers.advance(5_000)

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_timer_armed_by_callback_fires_in_same_window(
        self, timers: FakeTimerScheduler
    ) -> None:
        calls: list[str] = []

        async def second() -> None:
            calls.append("second")

        async def first() -> None:
            calls.append("first")
            timers.call_later(100, second)

        timers.call_later(100, first)
        await timers.advance(200)

        assert calls == ["first", "second"]

    def test_repeating_needs_positive_interval(self, timers: FakeTimerScheduler) -> None:
        async def noop() -> None:
            return None

        with pytest.raises(ValueError):
            timers.call_repeating(0, noop)

    def test_next_due(self, timers: FakeTimerScheduler, clock: FakeTimeAuthority) -> None:
        async def noop() -> None:
            return None

        assert timers.next_due_ms() is None
        timers.call_later(250, noop)
        assert timers.next_due_ms() == clock.now_ms() + 250
