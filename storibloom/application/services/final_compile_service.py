"""Final compile service: readiness and the submitted abstract.

During FINAL, participants mark themselves ready and post last edit
requests. Completing the room folds those edits into the living draft,
normalizes the result to exactly ABSTRACT_WORDS words (with one corrective
pass when the model misses the count), stores it as the room's final
abstract, and locks input. Completion happens once per room; later calls
return the stored abstract.
"""

from __future__ import annotations

from dataclasses import dataclass

from storibloom.application.ports.completion import CompletionProtocol
from storibloom.application.ports.message_store import MessageStoreProtocol
from storibloom.application.ports.room_repository import RoomRepositoryProtocol
from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.services.base import LoggingMixin
from storibloom.domain.errors.stage import RoomNotFoundError
from storibloom.domain.models.message import AuthorType
from storibloom.domain.models.room import (
    DRAFT,
    FINAL_ABSTRACT,
    FINAL_READY,
    FINAL_SUBMITTED_AT,
    INPUT_LOCKED,
    SUBMITTED_FINAL,
    TOPIC,
    RoomState,
)
from storibloom.domain.models.stage import Stage, parse_stage
from storibloom.domain.services.facilitator_script import (
    ABSTRACT_WORDS,
    FINAL_SUBMITTED_NOTE,
    exact_length_prompt,
    facilitator_system_prompt,
    final_edit_prompt,
    length_fix_prompt,
    word_count,
)

EDIT_MAX_TOKENS = 600
EDIT_TEMPERATURE = 0.55
LENGTH_MAX_TOKENS = 800
LENGTH_TEMPERATURE = 0.6


@dataclass(frozen=True)
class FinalCompileResult:
    """Outcome of completing a room.

    Attributes:
        ok: False when the room was skipped.
        reason: Why it was skipped (``wrong_stage`` or ``no_text``).
        final_text: The stored abstract.
        word_count: Words in the stored abstract.
        already_submitted: True when an earlier call stored the abstract.
    """

    ok: bool
    reason: str | None = None
    final_text: str | None = None
    word_count: int = 0
    already_submitted: bool = False


class FinalCompileService(LoggingMixin):
    """Collects readiness and compiles the final abstract."""

    def __init__(
        self,
        room_repository: RoomRepositoryProtocol,
        message_store: MessageStoreProtocol,
        completion: CompletionProtocol,
        time_authority: TimeAuthorityProtocol,
        target_words: int = ABSTRACT_WORDS,
    ) -> None:
        self._rooms = room_repository
        self._messages = message_store
        self._completion = completion
        self._time = time_authority
        self.target_words = target_words
        self._init_logger()

    async def _require(self, room_id: str) -> RoomState:
        room = await self._rooms.get_room(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        return room

    async def mark_ready(self, room_id: str, uid: str) -> int:
        """Record that a participant is done with the final edits.

        Args:
            room_id: Room identifier.
            uid: Participant id. Marking twice counts once.

        Returns:
            Number of distinct participants ready.

        Raises:
            RoomNotFoundError: If the room does not exist.
            ValueError: If uid is empty.
        """
        if not uid:
            raise ValueError("uid cannot be empty")
        room = await self._require(room_id)
        ready = list(dict.fromkeys([*(room.get(FINAL_READY) or []), uid]))
        await self._rooms.update_room(room_id, {FINAL_READY: ready})
        self._log_operation("mark_ready", room_id=room_id).info(
            "final_ready_marked", uid=uid, ready=len(ready)
        )
        return len(ready)

    async def complete(self, room_id: str) -> FinalCompileResult:
        """Apply the FINAL edits, normalize the length, and submit.

        Args:
            room_id: Room identifier.

        Returns:
            FinalCompileResult describing what was stored.

        Raises:
            RoomNotFoundError: If the room does not exist.
        """
        log = self._log_operation("complete", room_id=room_id)
        room = await self._require(room_id)
        if room.get(SUBMITTED_FINAL):
            stored = room.get(FINAL_ABSTRACT) or ""
            return FinalCompileResult(
                ok=True,
                final_text=stored,
                word_count=word_count(stored),
                already_submitted=True,
            )
        if parse_stage(room.stage) is not Stage.FINAL:
            return FinalCompileResult(ok=False, reason="wrong_stage")

        messages = await self._messages.messages_by_phase(room_id, Stage.FINAL.value)
        edits = [m.text for m in messages if m.author_type is AuthorType.USER and m.text]
        draft = room.get(DRAFT) or ""
        if not draft and not edits:
            return FinalCompileResult(ok=False, reason="no_text")

        system = facilitator_system_prompt(room.get(TOPIC))
        revised = await self._completion.complete(
            system,
            final_edit_prompt(draft, edits),
            max_tokens=EDIT_MAX_TOKENS,
            temperature=EDIT_TEMPERATURE,
        )
        final_text = await self.to_exact_length(revised or draft, system)
        words = word_count(final_text)

        await self._rooms.update_room(
            room_id,
            {
                FINAL_ABSTRACT: final_text,
                FINAL_SUBMITTED_AT: self._time.now_ms(),
                SUBMITTED_FINAL: True,
                INPUT_LOCKED: True,
            },
        )
        await self._messages.add_message(
            room_id, Stage.FINAL.value, AuthorType.FACILITATOR, FINAL_SUBMITTED_NOTE
        )
        log.info("final_abstract_submitted", edits=len(edits), words=words)
        return FinalCompileResult(ok=True, final_text=final_text, word_count=words)

    async def to_exact_length(self, text: str, system: str) -> str:
        """Rewrite text to exactly ``target_words`` words.

        A second pass quoting the actual count runs when the first rewrite
        misses. An empty rewrite keeps the previous text.
        """
        first = await self._ask(system, exact_length_prompt(text, self.target_words))
        out = first or text
        count = word_count(out)
        if count == self.target_words:
            return out

        self._log.debug("final_length_retry", words=count, target=self.target_words)
        second = await self._ask(
            system, length_fix_prompt(out, count, self.target_words)
        )
        return second or out

    async def _ask(self, system: str, prompt: str) -> str:
        return await self._completion.complete(
            system,
            prompt,
            max_tokens=LENGTH_MAX_TOKENS,
            temperature=LENGTH_TEMPERATURE,
        )
