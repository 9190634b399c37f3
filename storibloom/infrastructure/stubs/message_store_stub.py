"""Message store stub implementation.

In-memory MessageStoreProtocol. ``created_at`` comes from the injected time
authority and is forced strictly increasing per room so ordering by
creation time is stable even when several messages land in the same
millisecond.
"""

from __future__ import annotations

from storibloom.application.ports.message_store import MessageStoreProtocol
from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.domain.models.message import AuthorType, Message


class MessageStoreStub(MessageStoreProtocol):
    """In-memory stub implementation of MessageStoreProtocol."""

    def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
        self._time = time_authority
        self._messages: dict[str, list[Message]] = {}

    async def add_message(
        self,
        room_id: str,
        phase: str,
        author_type: AuthorType,
        text: str,
        uid: str | None = None,
    ) -> Message:
        room_messages = self._messages.setdefault(room_id, [])
        created_at = self._time.now_ms()
        if room_messages and created_at <= room_messages[-1].created_at:
            created_at = room_messages[-1].created_at + 1
        message = Message(
            room_id=room_id,
            created_at=created_at,
            phase=phase,
            author_type=author_type,
            text=text,
            uid=uid,
        )
        room_messages.append(message)
        return message

    async def messages_by_phase(self, room_id: str, phase: str) -> list[Message]:
        return [m for m in self._messages.get(room_id, []) if m.phase == phase]

    def all_messages(self, room_id: str) -> list[Message]:
        """Every message in a room, oldest first (for testing)."""
        return list(self._messages.get(room_id, []))

    def facilitator_messages(self, room_id: str) -> list[Message]:
        """Messages posted by the facilitator in a room (for testing)."""
        return [
            m
            for m in self._messages.get(room_id, [])
            if m.author_type is AuthorType.FACILITATOR
        ]

    def clear(self) -> None:
        """Clear all stored data (for testing)."""
        self._messages.clear()
