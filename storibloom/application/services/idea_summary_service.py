"""Idea summary service: rolling bullet summary of a room's ideas.

Chat messages in DISCOVERY and IDEA_DUMP call ``request(room_id)``; the
debounce scheduler coalesces bursts so the summary is recomputed at most
once per quiet period, and at least once per max-wait window while chat
keeps flowing.
"""

from __future__ import annotations

from dataclasses import dataclass

from storibloom.application.ports.completion import CompletionProtocol
from storibloom.application.ports.message_store import MessageStoreProtocol
from storibloom.application.ports.room_repository import RoomRepositoryProtocol
from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.ports.timer_scheduler import TimerSchedulerProtocol
from storibloom.application.services.base import LoggingMixin
from storibloom.application.services.debounce_scheduler import DebounceScheduler
from storibloom.config.stage_config import DebounceConfig
from storibloom.domain.models.message import AuthorType
from storibloom.domain.models.room import (
    IDEA_SUMMARY,
    LAST_IDEA_SUMMARY_AT,
    MEMORY_NOTES,
    TOPIC,
)
from storibloom.domain.models.stage import INITIAL_STAGE, Stage, parse_stage
from storibloom.domain.services.facilitator_script import (
    facilitator_system_prompt,
    idea_summary_prompt,
    parse_bullets,
)

SUMMARY_MAX_TOKENS = 260
SUMMARY_TEMPERATURE = 0.4

SUMMARY_STAGES = frozenset({Stage.DISCOVERY, Stage.IDEA_DUMP})


@dataclass(frozen=True)
class IdeaSummaryResult:
    """Outcome of one summarization run.

    Attributes:
        ok: False when the room was skipped.
        reason: Why it was skipped (``room_not_found`` or ``wrong_stage``).
        empty: True when there was nothing to summarize yet.
        summary: The stored summary text.
    """

    ok: bool
    reason: str | None = None
    empty: bool = False
    summary: str | None = None


class IdeaSummaryService(LoggingMixin):
    """Summarizes participant ideas into the room's memory."""

    def __init__(
        self,
        room_repository: RoomRepositoryProtocol,
        message_store: MessageStoreProtocol,
        completion: CompletionProtocol,
        timer_scheduler: TimerSchedulerProtocol,
        time_authority: TimeAuthorityProtocol,
        debounce_config: DebounceConfig | None = None,
    ) -> None:
        self._rooms = room_repository
        self._messages = message_store
        self._completion = completion
        self._time = time_authority
        self._debouncer = DebounceScheduler(
            job=self._run_debounced,
            timer_scheduler=timer_scheduler,
            time_authority=time_authority,
            config=debounce_config,
            name="idea_summary",
        )
        self._init_logger()

    @property
    def debouncer(self) -> DebounceScheduler:
        """The per-room debounce scheduler."""
        return self._debouncer

    def request(self, room_id: str) -> None:
        """Ask for a summary refresh; coalesced per room. Never raises."""
        self._debouncer.trigger(room_id)

    def shutdown(self) -> None:
        """Drop pending refreshes and refuse new ones."""
        self._debouncer.destroy()

    async def _run_debounced(self, room_id: str) -> None:
        result = await self.summarize(room_id)
        if not result.ok:
            self._log.info("idea_summary_skipped", room_id=room_id, reason=result.reason)

    async def summarize(self, room_id: str) -> IdeaSummaryResult:
        """Summarize the current stage's participant messages.

        Args:
            room_id: Room to summarize.

        Returns:
            IdeaSummaryResult describing what was stored.
        """
        log = self._log_operation("summarize", room_id=room_id)
        room = await self._rooms.get_room(room_id)
        if room is None:
            return IdeaSummaryResult(ok=False, reason="room_not_found")

        stage = parse_stage(room.stage or INITIAL_STAGE.value)
        if stage not in SUMMARY_STAGES:
            return IdeaSummaryResult(ok=False, reason="wrong_stage")

        messages = await self._messages.messages_by_phase(room_id, stage.value)
        contributions = [
            m.text for m in messages if m.author_type is AuthorType.USER and m.text
        ]
        now = self._time.now_ms()

        if not contributions:
            await self._rooms.update_room(
                room_id, {IDEA_SUMMARY: "", LAST_IDEA_SUMMARY_AT: now}
            )
            log.debug("idea_summary_empty")
            return IdeaSummaryResult(ok=True, empty=True, summary="")

        summary = await self._completion.complete(
            facilitator_system_prompt(room.get(TOPIC)),
            idea_summary_prompt(contributions),
            max_tokens=SUMMARY_MAX_TOKENS,
            temperature=SUMMARY_TEMPERATURE,
        )

        # Order-preserving union with earlier notes
        notes = list(dict.fromkeys([*(room.get(MEMORY_NOTES) or []), *parse_bullets(summary)]))
        await self._rooms.update_room(
            room_id,
            {IDEA_SUMMARY: summary, MEMORY_NOTES: notes, LAST_IDEA_SUMMARY_AT: now},
        )
        if summary:
            await self._messages.add_message(
                room_id,
                stage.value,
                AuthorType.FACILITATOR,
                f"Idea snapshot:\n{summary}",
            )
        log.info(
            "idea_summary_updated",
            stage=stage.value,
            contributions=len(contributions),
            memory_notes=len(notes),
        )
        return IdeaSummaryResult(ok=True, summary=summary)
