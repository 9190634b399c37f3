"""
Pytest configuration and shared fixtures for StoriBloom tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async collaborators, the in-memory stubs for stateful ones
- Time is always simulated: FakeTimeAuthority + FakeTimerScheduler
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

import pytest

from storibloom.config.stage_config import DebounceConfig
from storibloom.infrastructure.stubs import (
    CompletionStub,
    MessageStoreStub,
    RoomRepositoryStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.fake_timer_scheduler import FakeTimerScheduler


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from storibloom import __version__

    return __version__


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    """Frozen clock at 2026-01-01T00:00:00Z."""
    return FakeTimeAuthority()


@pytest.fixture
def fake_timers(fake_time_authority: FakeTimeAuthority) -> FakeTimerScheduler:
    """Simulated-clock timers bound to the fake clock."""
    return FakeTimerScheduler(fake_time_authority)


@pytest.fixture
def room_repository() -> RoomRepositoryStub:
    """Empty in-memory room repository."""
    return RoomRepositoryStub()


@pytest.fixture
def message_store(fake_time_authority: FakeTimeAuthority) -> MessageStoreStub:
    """Empty in-memory message store on the fake clock."""
    return MessageStoreStub(fake_time_authority)


@pytest.fixture
def completion() -> CompletionStub:
    """Canned completion stub."""
    return CompletionStub()


@pytest.fixture
def debounce_config() -> DebounceConfig:
    """Default idea-summary debounce timing (10s quiet, 30s ceiling)."""
    return DebounceConfig(delay_ms=10_000, max_wait_ms=30_000)
