"""Application ports: the interfaces the workshop core consumes."""

from storibloom.application.ports.completion import CompletionProtocol
from storibloom.application.ports.message_store import MessageStoreProtocol
from storibloom.application.ports.room_repository import RoomRepositoryProtocol
from storibloom.application.ports.stage_reactor import StageReactorProtocol
from storibloom.application.ports.stage_tracking import StageTrackingProtocol
from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.ports.timer_scheduler import (
    TimerCallback,
    TimerHandle,
    TimerSchedulerProtocol,
)

__all__: list[str] = [
    "CompletionProtocol",
    "MessageStoreProtocol",
    "RoomRepositoryProtocol",
    "StageReactorProtocol",
    "StageTrackingProtocol",
    "TimeAuthorityProtocol",
    "TimerCallback",
    "TimerHandle",
    "TimerSchedulerProtocol",
]
