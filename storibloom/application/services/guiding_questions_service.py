"""Guiding questions posted once after the rough draft.

A short beat after the reactor posts the rough draft, the facilitator asks
two or three questions that point the room at quick improvements. The post
happens at most once per room, guarded by ``questions_posted_at``; a redo of
the draft does not ask again.
"""

from __future__ import annotations

from storibloom.application.ports.completion import CompletionProtocol
from storibloom.application.ports.message_store import MessageStoreProtocol
from storibloom.application.ports.room_repository import RoomRepositoryProtocol
from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.ports.timer_scheduler import TimerSchedulerProtocol
from storibloom.application.services.base import LoggingMixin
from storibloom.application.services.deferred_scheduler import (
    DeferredOneShotScheduler,
)
from storibloom.domain.models.message import AuthorType
from storibloom.domain.models.room import QUESTIONS_POSTED_AT, TOPIC
from storibloom.domain.models.stage import Stage, parse_stage
from storibloom.domain.services.facilitator_script import (
    GUIDING_QUESTIONS_FALLBACK,
    facilitator_system_prompt,
    guiding_questions_prompt,
)

GUIDING_QUESTIONS_DELAY_MS = 2_000
QUESTIONS_MAX_TOKENS = 160
QUESTIONS_TEMPERATURE = 0.6


class GuidingQuestionsService(LoggingMixin):
    """Posts the one-time guiding questions for the rough draft stage."""

    def __init__(
        self,
        room_repository: RoomRepositoryProtocol,
        message_store: MessageStoreProtocol,
        completion: CompletionProtocol,
        timer_scheduler: TimerSchedulerProtocol,
        time_authority: TimeAuthorityProtocol,
        delay_ms: int = GUIDING_QUESTIONS_DELAY_MS,
    ) -> None:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be non-negative, got {delay_ms}")
        self._rooms = room_repository
        self._messages = message_store
        self._completion = completion
        self._time = time_authority
        self.delay_ms = delay_ms
        self._pending = DeferredOneShotScheduler(
            action=self.post_questions,
            timer_scheduler=timer_scheduler,
            time_authority=time_authority,
            name="guiding_questions",
        )
        self._init_logger()

    def schedule(self, room_id: str) -> int:
        """Queue the questions for a room after the configured beat.

        Returns:
            The post time in epoch milliseconds.
        """
        when_ms = self._time.now_ms() + self.delay_ms
        self._pending.schedule(room_id, when_ms)
        return when_ms

    def is_pending(self, room_id: str) -> bool:
        """Check whether questions are queued for a room."""
        return self._pending.is_scheduled(room_id)

    def shutdown(self) -> int:
        """Drop every queued post.

        Returns:
            Number of posts dropped.
        """
        return self._pending.cancel_all()

    async def post_questions(self, room_id: str) -> bool:
        """Ask the questions now unless the room moved on or was already asked.

        Returns:
            True if questions were posted.
        """
        log = self._log_operation("post_questions", room_id=room_id)
        room = await self._rooms.get_room(room_id)
        if room is None:
            log.warning("guiding_questions_room_missing")
            return False
        if room.get(QUESTIONS_POSTED_AT):
            return False
        if parse_stage(room.stage) is not Stage.ROUGH_DRAFT:
            log.info("guiding_questions_skipped", stage=room.stage)
            return False

        text = await self._completion.complete(
            facilitator_system_prompt(room.get(TOPIC)),
            guiding_questions_prompt(),
            max_tokens=QUESTIONS_MAX_TOKENS,
            temperature=QUESTIONS_TEMPERATURE,
        )
        await self._messages.add_message(
            room_id,
            Stage.ROUGH_DRAFT.value,
            AuthorType.FACILITATOR,
            text or GUIDING_QUESTIONS_FALLBACK,
        )
        await self._rooms.update_room(
            room_id, {QUESTIONS_POSTED_AT: self._time.now_ms()}
        )
        log.info("guiding_questions_posted")
        return True
