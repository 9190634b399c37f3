"""Message store port (room chat history)."""

from __future__ import annotations

from typing import Protocol

from storibloom.domain.models.message import AuthorType, Message


class MessageStoreProtocol(Protocol):
    """Protocol for appending and querying room messages."""

    async def add_message(
        self,
        room_id: str,
        phase: str,
        author_type: AuthorType,
        text: str,
        uid: str | None = None,
    ) -> Message:
        """Append a message to a room.

        Args:
            room_id: Room identifier.
            phase: Stage name the message belongs to.
            author_type: Who wrote it.
            text: Message body (non-empty).
            uid: Participant id for user messages.

        Returns:
            The stored Message.
        """
        ...

    async def messages_by_phase(self, room_id: str, phase: str) -> list[Message]:
        """Get a room's messages for one stage, oldest first."""
        ...
