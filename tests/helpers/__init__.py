"""Test helpers: simulated clock and timers."""

from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.fake_timer_scheduler import FakeTimer, FakeTimerScheduler

__all__ = ["FakeTimeAuthority", "FakeTimer", "FakeTimerScheduler"]
