"""Room snapshot domain model.

The room record itself is owned by the storage layer and by the request
handlers around the stage engine. The engine only reads ``stage`` and
``stage_ends_at`` and writes new values for both; every other attribute
(topic, draft text, vote tallies, readiness sets) travels opaquely in
``attributes``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

# Patch keys with first-class fields on RoomState; anything else is an attribute
STAGE_FIELD = "stage"
STAGE_ENDS_AT_FIELD = "stage_ends_at"

# Attribute keys shared by the facilitator services and presenter controls
TOPIC = "topic"
GREETINGS_SENT = "greetings_sent"
DRAFT = "draft"
DRAFT_PASTED = "draft_pasted"
ROUGH_DRAFT_GENERATED_AT = "rough_draft_generated_at"
QUESTIONS_POSTED_AT = "questions_posted_at"
IDEA_SUMMARY = "idea_summary"
MEMORY_NOTES = "memory_notes"
LAST_IDEA_SUMMARY_AT = "last_idea_summary_at"
FINAL_READY = "final_ready"
FINAL_ABSTRACT = "final_abstract"
FINAL_SUBMITTED_AT = "final_submitted_at"
SUBMITTED_FINAL = "submitted_final"
INPUT_LOCKED = "input_locked"

# Cleared by a draft redo so the reactor regenerates and re-pastes
DRAFT_REDO_RESET: dict[str, Any] = {ROUGH_DRAFT_GENERATED_AT: None, DRAFT_PASTED: {}}


def parse_stage_ends_at(value: object) -> int | None:
    """Normalize a stored stage deadline to epoch milliseconds.

    Accepts integers and floats (milliseconds), datetimes (naive values are
    taken as UTC), and numeric or ISO 8601 strings. Anything else, including
    zero and negative values, counts as "no deadline".

    Args:
        value: Raw deadline value from a room record.

    Returns:
        Deadline in epoch milliseconds, or None if absent or unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        millis = int(value)
    elif isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        millis = int(value.timestamp() * 1000)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            millis = int(float(text))
        except (ValueError, OverflowError):
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
            return parse_stage_ends_at(parsed)
    else:
        return None
    return millis if millis > 0 else None


@dataclass(frozen=True, eq=True)
class RoomState:
    """Immutable snapshot of a persisted room.

    Attributes:
        room_id: Stable unique identifier.
        stage: Raw stored stage name. Usually a Stage value, but malformed
            records may carry anything; use parse_stage() before acting.
        stage_ends_at: Deadline of the current stage in epoch milliseconds,
            or None when not yet initialized.
        version: Incremented on every persisted write.
        attributes: Everything else on the record, read-only.
    """

    room_id: str
    stage: str
    stage_ends_at: int | None = None
    version: int = 0
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the snapshot and freeze its attributes."""
        if not self.room_id:
            raise ValueError("room_id cannot be empty")
        object.__setattr__(
            self, "attributes", MappingProxyType(dict(self.attributes))
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> RoomState:
        """Build a snapshot from a storage record.

        Accepts both snake_case and the camelCase keys used by older records
        (``roomId``, ``stageEndsAt``).

        Args:
            record: Raw room record.

        Returns:
            RoomState with the deadline normalized to epoch milliseconds.
        """
        data = dict(record)
        room_id = data.pop("room_id", None) or data.pop("roomId", None)
        stage = data.pop(STAGE_FIELD, None)
        ends_at = data.pop(STAGE_ENDS_AT_FIELD, None)
        if ends_at is None:
            ends_at = data.pop("stageEndsAt", None)
        else:
            data.pop("stageEndsAt", None)
        version = data.pop("version", 0)
        return cls(
            room_id=str(room_id or ""),
            stage=str(stage) if stage is not None else "",
            stage_ends_at=parse_stage_ends_at(ends_at),
            version=int(version or 0),
            attributes=data,
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Read an attribute by key."""
        return self.attributes.get(key, default)

    def with_patch(self, patch: Mapping[str, Any]) -> RoomState:
        """Create new snapshot with a shallow patch merged in.

        Since RoomState is frozen, returns new instance with version + 1.

        Args:
            patch: Fields to set. ``stage`` and ``stage_ends_at`` update the
                first-class fields; other keys merge into attributes.

        Returns:
            New RoomState with the patch applied.
        """
        attributes = dict(self.attributes)
        stage = self.stage
        stage_ends_at = self.stage_ends_at
        for key, value in patch.items():
            if key == STAGE_FIELD:
                stage = str(value.value if hasattr(value, "value") else value)
            elif key == STAGE_ENDS_AT_FIELD:
                stage_ends_at = parse_stage_ends_at(value)
            else:
                attributes[key] = value
        return RoomState(
            room_id=self.room_id,
            stage=stage,
            stage_ends_at=stage_ends_at,
            version=self.version + 1,
            attributes=attributes,
        )

    def to_record(self) -> dict[str, Any]:
        """Flatten the snapshot back into a storage record."""
        record = dict(self.attributes)
        record.update(
            {
                "room_id": self.room_id,
                STAGE_FIELD: self.stage,
                STAGE_ENDS_AT_FIELD: self.stage_ends_at,
                "version": self.version,
            }
        )
        return record
