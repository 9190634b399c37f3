"""Facilitator reactor: one-time side effects of entering a stage.

The stage engine calls ``on_stage_advanced`` once per observed stage change,
after the new stage is persisted. The reactor then:

- arms the final auto-close timer on FINAL and disarms it on anything else,
- posts the stage instruction once per stage,
- generates the rough draft once on ROUGH_DRAFT, stores it as the room's
  living draft, and queues the guiding questions,
- pastes the living draft once on EDITING and once on FINAL.

Every step is guarded by a room attribute so a redelivered notification
(for example after a restart re-learns the stage) never duplicates a post.
Each step is best-effort: one failing step is logged and the rest still run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from storibloom.application.ports.completion import CompletionProtocol
from storibloom.application.ports.message_store import MessageStoreProtocol
from storibloom.application.ports.room_repository import RoomRepositoryProtocol
from storibloom.application.ports.stage_reactor import StageReactorProtocol
from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.services.base import LoggingMixin
from storibloom.application.services.final_auto_close_service import (
    FinalAutoCloseService,
)
from storibloom.application.services.guiding_questions_service import (
    GuidingQuestionsService,
)
from storibloom.domain.models.message import AuthorType
from storibloom.domain.models.room import (
    DRAFT,
    DRAFT_PASTED,
    GREETINGS_SENT,
    IDEA_SUMMARY,
    ROUGH_DRAFT_GENERATED_AT,
    TOPIC,
    RoomState,
)
from storibloom.domain.models.stage import Stage, parse_stage
from storibloom.domain.services.facilitator_script import (
    facilitator_system_prompt,
    rough_draft_prompt,
    stage_greeting,
)

DRAFT_MAX_TOKENS = 600
DRAFT_TEMPERATURE = 0.6

_DRAFT_STAGES = frozenset({Stage.EDITING, Stage.FINAL})


def _stage_key(room: RoomState) -> str:
    """Canonical stage name for guard keys and message phases."""
    stage = parse_stage(room.stage)
    return stage.value if stage is not None else room.stage


class FacilitatorReactor(StageReactorProtocol, LoggingMixin):
    """Stage transition reactor posting facilitator messages."""

    def __init__(
        self,
        room_repository: RoomRepositoryProtocol,
        message_store: MessageStoreProtocol,
        completion: CompletionProtocol,
        final_auto_close: FinalAutoCloseService,
        time_authority: TimeAuthorityProtocol,
        guiding_questions: GuidingQuestionsService | None = None,
    ) -> None:
        self._rooms = room_repository
        self._messages = message_store
        self._completion = completion
        self._final_auto_close = final_auto_close
        self._time = time_authority
        self._guiding_questions = guiding_questions
        self._init_logger()

    async def on_stage_advanced(self, room: RoomState) -> None:
        stage = parse_stage(room.stage)
        log = self._log_operation("on_stage_advanced", room_id=room.room_id)
        log.info("stage_reaction_started", stage=room.stage)

        if stage is Stage.FINAL:
            self._final_auto_close.arm(room)
        else:
            self._final_auto_close.disarm(room.room_id)

        await self._best_effort("greeting", room, self._post_greeting)
        if stage is Stage.ROUGH_DRAFT:
            await self._best_effort("rough_draft", room, self._generate_rough_draft)
        if stage in _DRAFT_STAGES:
            await self._best_effort("paste_draft", room, self._paste_draft)

    async def _best_effort(
        self,
        step: str,
        room: RoomState,
        action: Callable[[RoomState], Awaitable[None]],
    ) -> None:
        try:
            await action(room)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._log.error(
                "stage_reaction_step_failed",
                step=step,
                room_id=room.room_id,
                stage=room.stage,
                error=str(e),
            )

    async def _current(self, room: RoomState) -> RoomState:
        """Re-read the room so guards see writes from earlier steps."""
        return await self._rooms.get_room(room.room_id) or room

    async def _post_greeting(self, room: RoomState) -> None:
        current = await self._current(room)
        key = _stage_key(room)
        sent: dict[str, Any] = dict(current.get(GREETINGS_SENT) or {})
        if sent.get(key):
            return

        seconds_left = None
        if room.stage_ends_at is not None:
            seconds_left = max(0, (room.stage_ends_at - self._time.now_ms()) // 1000)
        text = stage_greeting(room.stage, current.get(TOPIC), seconds_left)
        await self._messages.add_message(
            room.room_id, key, AuthorType.FACILITATOR, text
        )

        sent[key] = True
        await self._rooms.update_room(room.room_id, {GREETINGS_SENT: sent})

    async def _generate_rough_draft(self, room: RoomState) -> None:
        current = await self._current(room)
        if current.get(ROUGH_DRAFT_GENERATED_AT):
            return

        planning = await self._messages.messages_by_phase(
            room.room_id, Stage.PLANNING.value
        )
        plan_notes = [m.text for m in planning if m.author_type is AuthorType.USER]
        draft = await self._completion.complete(
            facilitator_system_prompt(current.get(TOPIC)),
            rough_draft_prompt(current.get(IDEA_SUMMARY) or "", plan_notes),
            max_tokens=DRAFT_MAX_TOKENS,
            temperature=DRAFT_TEMPERATURE,
        )
        if not draft:
            self._log.warning("rough_draft_empty", room_id=room.room_id)
            return

        await self._rooms.update_room(
            room.room_id,
            {DRAFT: draft, ROUGH_DRAFT_GENERATED_AT: self._time.now_ms()},
        )
        await self._messages.add_message(
            room.room_id,
            Stage.ROUGH_DRAFT.value,
            AuthorType.FACILITATOR,
            f"Here's a rough draft:\n\n{draft}",
        )
        self._log.info("rough_draft_generated", room_id=room.room_id, chars=len(draft))
        if self._guiding_questions is not None:
            self._guiding_questions.schedule(room.room_id)

    async def _paste_draft(self, room: RoomState) -> None:
        current = await self._current(room)
        draft = current.get(DRAFT)
        if not draft:
            self._log.info("draft_paste_skipped_no_draft", room_id=room.room_id)
            return

        key = _stage_key(room)
        pasted: dict[str, Any] = dict(current.get(DRAFT_PASTED) or {})
        if pasted.get(key):
            return

        await self._messages.add_message(
            room.room_id,
            key,
            AuthorType.FACILITATOR,
            f"Here's the living draft to work from:\n\n{draft}",
        )
        pasted[key] = True
        await self._rooms.update_room(room.room_id, {DRAFT_PASTED: pasted})
