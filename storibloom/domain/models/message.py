"""Chat message domain model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AuthorType(Enum):
    """Who wrote a message.

    Types:
        USER: A participant
        FACILITATOR: The AI facilitator persona
        SYSTEM: Automated notices
    """

    USER = "user"
    FACILITATOR = "facilitator"
    SYSTEM = "system"


@dataclass(frozen=True, eq=True)
class Message:
    """A single chat line posted to a room during a stage.

    Attributes:
        room_id: Room the message belongs to.
        created_at: Epoch milliseconds when stored (sort key).
        phase: Stage name the message was posted in.
        author_type: Who wrote it.
        text: Message body.
        uid: Participant id for USER messages.
    """

    room_id: str
    created_at: int
    phase: str
    author_type: AuthorType
    text: str
    uid: str | None = None

    def __post_init__(self) -> None:
        """Validate message fields."""
        if not self.room_id:
            raise ValueError("room_id cannot be empty")
        if not self.text:
            raise ValueError("text cannot be empty")
