"""Time Authority Service - the production wall clock.

Services never call datetime.now() or time.time() themselves; they receive
this service (or FakeTimeAuthority in tests) through TimeAuthorityProtocol.
"""

import time
from datetime import datetime, timezone

from storibloom.application.ports.time_authority import TimeAuthorityProtocol


class TimeAuthorityService(TimeAuthorityProtocol):
    """System clock implementation of TimeAuthorityProtocol.

    Example:
        >>> clock = TimeAuthorityService()
        >>> deadline_ms = clock.now_ms() + 60_000
    """

    def now(self) -> datetime:
        """Return current time (UTC, timezone-aware)."""
        return datetime.now(timezone.utc)

    def utcnow(self) -> datetime:
        """Return current UTC time."""
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        """Return the process monotonic clock in seconds."""
        return time.monotonic()

    def now_ms(self) -> int:
        """Return current epoch milliseconds without a datetime round-trip."""
        return time.time_ns() // 1_000_000
