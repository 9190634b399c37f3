"""Time Authority Protocol - interface for consistent timestamp provisioning.

All services that need the current time MUST inject a TimeAuthorityProtocol
implementation instead of calling datetime.now() or time.time() directly.

Benefits:
1. **Consistency**: All services get time from a single authority
2. **Testability**: Tests inject FakeTimeAuthority for deterministic behavior
3. **Reliability**: No flaky tests from wall-clock dependent logic
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority.

    Example usage:
        class MyService:
            def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
                self._time = time_authority

            def process(self) -> None:
                now_ms = self._time.now_ms()  # NOT time.time()
                ...

    For production:
        Use TimeAuthorityService from storibloom/application/services/

    For testing:
        Use FakeTimeAuthority from tests/helpers/fake_time_authority.py
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return current local time with timezone awareness."""
        ...

    @abstractmethod
    def utcnow(self) -> datetime:
        """Return current UTC time (timezone-aware)."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return monotonic clock value in seconds for measuring elapsed time.

        Note:
            The reference point is arbitrary - only differences are meaningful.
        """
        ...

    def now_ms(self) -> int:
        """Return current wall-clock time in epoch milliseconds.

        Stage deadlines are stored in this unit.
        """
        return (self.utcnow() - _EPOCH) // _ONE_MS
