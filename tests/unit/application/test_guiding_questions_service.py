"""Unit tests for the one-time guiding questions."""

from __future__ import annotations

import pytest

from storibloom.application.services.guiding_questions_service import (
    GUIDING_QUESTIONS_DELAY_MS,
    QUESTIONS_MAX_TOKENS,
    GuidingQuestionsService,
)
from storibloom.domain.models.stage import Stage
from storibloom.domain.services.facilitator_script import GUIDING_QUESTIONS_FALLBACK
from storibloom.infrastructure.stubs import (
    CompletionStub,
    MessageStoreStub,
    RoomRepositoryStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.fake_timer_scheduler import FakeTimerScheduler


@pytest.fixture
def service(
    room_repository: RoomRepositoryStub,
    message_store: MessageStoreStub,
    completion: CompletionStub,
    fake_timers: FakeTimerScheduler,
    fake_time_authority: FakeTimeAuthority,
) -> GuidingQuestionsService:
    return GuidingQuestionsService(
        room_repository=room_repository,
        message_store=message_store,
        completion=completion,
        timer_scheduler=fake_timers,
        time_authority=fake_time_authority,
    )


class TestSchedule:
    @pytest.mark.asyncio
    async def test_posts_after_short_beat(
        self,
        service: GuidingQuestionsService,
        room_repository: RoomRepositoryStub,
        message_store: MessageStoreStub,
        completion: CompletionStub,
        fake_timers: FakeTimerScheduler,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        room_repository.create_room("r1", Stage.ROUGH_DRAFT, topic="Wealth Gap")
        completion.queue_response("1. Whose stakes are clearest?")

        when = service.schedule("r1")
        assert when == fake_time_authority.now_ms() + GUIDING_QUESTIONS_DELAY_MS

        await fake_timers.advance(GUIDING_QUESTIONS_DELAY_MS - 1)
        assert message_store.facilitator_messages("r1") == []

        await fake_timers.advance(1)
        posted = message_store.facilitator_messages("r1")
        assert [(m.phase, m.text) for m in posted] == [
            ("ROUGH_DRAFT", "1. Whose stakes are clearest?")
        ]
        assert "Wealth Gap" in completion.calls[0].system
        assert completion.calls[0].max_tokens == QUESTIONS_MAX_TOKENS
        stored = await room_repository.get_room("r1")
        assert stored.get("questions_posted_at") == fake_time_authority.now_ms()
        assert not service.is_pending("r1")

    @pytest.mark.asyncio
    async def test_shutdown_drops_pending_posts(
        self,
        service: GuidingQuestionsService,
        room_repository: RoomRepositoryStub,
        message_store: MessageStoreStub,
        fake_timers: FakeTimerScheduler,
    ) -> None:
        room_repository.create_room("r1", Stage.ROUGH_DRAFT)
        service.schedule("r1")

        assert service.shutdown() == 1
        await fake_timers.advance(GUIDING_QUESTIONS_DELAY_MS)

        assert message_store.facilitator_messages("r1") == []

    def test_negative_delay_rejected(
        self,
        room_repository: RoomRepositoryStub,
        message_store: MessageStoreStub,
        completion: CompletionStub,
        fake_timers: FakeTimerScheduler,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        with pytest.raises(ValueError):
            GuidingQuestionsService(
                room_repository=room_repository,
                message_store=message_store,
                completion=completion,
                timer_scheduler=fake_timers,
                time_authority=fake_time_authority,
                delay_ms=-1,
            )


class TestPostQuestions:
    @pytest.mark.asyncio
    async def test_posted_once(
        self,
        service: GuidingQuestionsService,
        room_repository: RoomRepositoryStub,
        message_store: MessageStoreStub,
        completion: CompletionStub,
    ) -> None:
        room_repository.create_room("r1", Stage.ROUGH_DRAFT)

        assert await service.post_questions("r1") is True
        assert await service.post_questions("r1") is False

        assert completion.call_count == 1
        assert len(message_store.facilitator_messages("r1")) == 1

    @pytest.mark.asyncio
    async def test_room_moved_on_is_skipped(
        self,
        service: GuidingQuestionsService,
        room_repository: RoomRepositoryStub,
        completion: CompletionStub,
    ) -> None:
        room_repository.create_room("r1", Stage.EDITING)

        assert await service.post_questions("r1") is False
        assert completion.call_count == 0

    @pytest.mark.asyncio
    async def test_missing_room_is_skipped(
        self, service: GuidingQuestionsService
    ) -> None:
        assert await service.post_questions("ghost") is False

    @pytest.mark.asyncio
    async def test_empty_completion_uses_fallback(
        self,
        service: GuidingQuestionsService,
        room_repository: RoomRepositoryStub,
        message_store: MessageStoreStub,
        completion: CompletionStub,
    ) -> None:
        room_repository.create_room("r1", Stage.ROUGH_DRAFT)
        completion.queue_response("  ")

        await service.post_questions("r1")

        assert message_store.facilitator_messages("r1")[0].text == (
            GUIDING_QUESTIONS_FALLBACK
        )

    @pytest.mark.asyncio
    async def test_completion_failure_leaves_guard_unset(
        self,
        service: GuidingQuestionsService,
        room_repository: RoomRepositoryStub,
        message_store: MessageStoreStub,
        completion: CompletionStub,
        fake_timers: FakeTimerScheduler,
    ) -> None:
        room_repository.create_room("r1", Stage.ROUGH_DRAFT)
        completion.fail = True
        service.schedule("r1")

        await fake_timers.advance(GUIDING_QUESTIONS_DELAY_MS)

        assert message_store.facilitator_messages("r1") == []
        stored = await room_repository.get_room("r1")
        assert stored.get("questions_posted_at") is None
