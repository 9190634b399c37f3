"""Unit tests for TimeAuthorityService."""

import time
from datetime import timezone

from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.services.time_authority_service import (
    TimeAuthorityService,
)


class TestTimeAuthorityService:
    def test_implements_protocol(self) -> None:
        assert isinstance(TimeAuthorityService(), TimeAuthorityProtocol)

    def test_now_is_timezone_aware_utc(self) -> None:
        now = TimeAuthorityService().now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timezone.utc.utcoffset(None)

    def test_now_ms_tracks_wall_clock(self) -> None:
        before = time.time_ns() // 1_000_000
        now_ms = TimeAuthorityService().now_ms()
        after = time.time_ns() // 1_000_000

        assert before <= now_ms <= after

    def test_now_ms_agrees_with_utcnow(self) -> None:
        clock = TimeAuthorityService()

        from_datetime = int(clock.utcnow().timestamp() * 1000)

        assert abs(clock.now_ms() - from_datetime) < 1_000

    def test_monotonic_never_goes_backwards(self) -> None:
        clock = TimeAuthorityService()
        first = clock.monotonic()
        assert clock.monotonic() >= first
