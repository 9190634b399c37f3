"""Unit tests for readiness and the final abstract compile."""

from __future__ import annotations

import pytest

from storibloom.application.services.final_compile_service import (
    EDIT_TEMPERATURE,
    LENGTH_MAX_TOKENS,
    FinalCompileService,
)
from storibloom.domain.errors.stage import RoomNotFoundError
from storibloom.domain.models.message import AuthorType
from storibloom.domain.models.stage import Stage
from storibloom.domain.services.facilitator_script import FINAL_SUBMITTED_NOTE
from storibloom.infrastructure.stubs import (
    CompletionStub,
    MessageStoreStub,
    RoomRepositoryStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority

TARGET_WORDS = 5


def words(n: int) -> str:
    return " ".join(f"w{i}" for i in range(n))


@pytest.fixture
def service(
    room_repository: RoomRepositoryStub,
    message_store: MessageStoreStub,
    completion: CompletionStub,
    fake_time_authority: FakeTimeAuthority,
) -> FinalCompileService:
    return FinalCompileService(
        room_repository=room_repository,
        message_store=message_store,
        completion=completion,
        time_authority=fake_time_authority,
        target_words=TARGET_WORDS,
    )


class TestMarkReady:
    @pytest.mark.asyncio
    async def test_counts_distinct_participants(
        self,
        service: FinalCompileService,
        room_repository: RoomRepositoryStub,
    ) -> None:
        room_repository.create_room("r1", Stage.FINAL)

        assert await service.mark_ready("r1", "u1") == 1
        assert await service.mark_ready("r1", "u2") == 2
        assert await service.mark_ready("r1", "u1") == 2

        stored = await room_repository.get_room("r1")
        assert stored.get("final_ready") == ["u1", "u2"]

    @pytest.mark.asyncio
    async def test_missing_room_raises(self, service: FinalCompileService) -> None:
        with pytest.raises(RoomNotFoundError):
            await service.mark_ready("ghost", "u1")

    @pytest.mark.asyncio
    async def test_empty_uid_rejected(
        self,
        service: FinalCompileService,
        room_repository: RoomRepositoryStub,
    ) -> None:
        room_repository.create_room("r1", Stage.FINAL)

        with pytest.raises(ValueError):
            await service.mark_ready("r1", "")


class TestComplete:
    @pytest.mark.asyncio
    async def test_applies_final_edits_and_submits(
        self,
        service: FinalCompileService,
        room_repository: RoomRepositoryStub,
        message_store: MessageStoreStub,
        completion: CompletionStub,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        room_repository.create_room(
            "r1", Stage.FINAL, draft="The living draft.", topic="Food Deserts"
        )
        await message_store.add_message("r1", "EDITING", AuthorType.USER, "old note")
        await message_store.add_message("r1", "FINAL", AuthorType.USER, "cut the ending")
        await message_store.add_message("r1", "FINAL", AuthorType.FACILITATOR, "noted")
        completion.queue_response("Edited draft text.", words(TARGET_WORDS))

        result = await service.complete("r1")

        assert result.ok
        assert result.final_text == words(TARGET_WORDS)
        assert result.word_count == TARGET_WORDS
        assert completion.call_count == 2

        edit_call, length_call = completion.calls
        assert "The living draft." in edit_call.prompt
        assert "cut the ending" in edit_call.prompt
        assert "old note" not in edit_call.prompt
        assert "noted" not in edit_call.prompt
        assert "Food Deserts" in edit_call.system
        assert edit_call.temperature == EDIT_TEMPERATURE
        assert "Edited draft text." in length_call.prompt
        assert f"exactly {TARGET_WORDS} words" in length_call.prompt
        assert length_call.max_tokens == LENGTH_MAX_TOKENS

        stored = await room_repository.get_room("r1")
        assert stored.get("final_abstract") == words(TARGET_WORDS)
        assert stored.get("submitted_final") is True
        assert stored.get("input_locked") is True
        assert stored.get("final_submitted_at") == fake_time_authority.now_ms()
        posted = message_store.facilitator_messages("r1")
        assert [(m.phase, m.text) for m in posted] == [("FINAL", FINAL_SUBMITTED_NOTE)]

    @pytest.mark.asyncio
    async def test_wrong_length_gets_one_corrective_pass(
        self,
        service: FinalCompileService,
        room_repository: RoomRepositoryStub,
        completion: CompletionStub,
    ) -> None:
        room_repository.create_room("r1", Stage.FINAL, draft="Draft.")
        completion.queue_response("Edited.", words(7), words(6))

        result = await service.complete("r1")

        assert completion.call_count == 3
        fix_prompt = completion.calls[2].prompt
        assert "Your last output had 7 words" in fix_prompt
        assert f"EXACTLY {TARGET_WORDS} words" in fix_prompt
        assert result.final_text == words(6)
        assert result.word_count == 6

    @pytest.mark.asyncio
    async def test_empty_rewrites_keep_previous_text(
        self,
        service: FinalCompileService,
        room_repository: RoomRepositoryStub,
        completion: CompletionStub,
    ) -> None:
        room_repository.create_room("r1", Stage.FINAL, draft="Only the draft.")
        completion.queue_response("", "", "")

        result = await service.complete("r1")

        assert result.final_text == "Only the draft."

    @pytest.mark.asyncio
    async def test_second_call_returns_stored_abstract(
        self,
        service: FinalCompileService,
        room_repository: RoomRepositoryStub,
        message_store: MessageStoreStub,
        completion: CompletionStub,
    ) -> None:
        room_repository.create_room("r1", Stage.FINAL, draft="Draft.")
        completion.queue_response("Edited.", words(TARGET_WORDS))
        first = await service.complete("r1")

        second = await service.complete("r1")

        assert second.already_submitted
        assert second.final_text == first.final_text
        assert completion.call_count == 2
        assert len(message_store.facilitator_messages("r1")) == 1

    @pytest.mark.asyncio
    async def test_outside_final_is_skipped(
        self,
        service: FinalCompileService,
        room_repository: RoomRepositoryStub,
        completion: CompletionStub,
    ) -> None:
        room_repository.create_room("r1", Stage.EDITING, draft="Draft.")

        result = await service.complete("r1")

        assert result.ok is False
        assert result.reason == "wrong_stage"
        assert completion.call_count == 0

    @pytest.mark.asyncio
    async def test_nothing_to_compile(
        self,
        service: FinalCompileService,
        room_repository: RoomRepositoryStub,
        completion: CompletionStub,
    ) -> None:
        room_repository.create_room("r1", Stage.FINAL)

        result = await service.complete("r1")

        assert result.reason == "no_text"
        assert completion.call_count == 0

    @pytest.mark.asyncio
    async def test_missing_room_raises(self, service: FinalCompileService) -> None:
        with pytest.raises(RoomNotFoundError):
            await service.complete("ghost")
