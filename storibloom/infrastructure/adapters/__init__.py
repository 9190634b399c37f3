"""Infrastructure adapters for the workshop ports."""

from storibloom.infrastructure.adapters.asyncio_timer_scheduler import (
    AsyncioTimerHandle,
    AsyncioTimerScheduler,
)
from storibloom.infrastructure.adapters.in_memory_stage_tracking import (
    InMemoryStageTracking,
)

__all__: list[str] = [
    "AsyncioTimerHandle",
    "AsyncioTimerScheduler",
    "InMemoryStageTracking",
]
