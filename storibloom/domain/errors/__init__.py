"""Domain errors for StoriBloom.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from WorkshopError.
"""

from storibloom.domain.errors.stage import (
    ConcurrentStageModificationError,
    InvalidStageError,
    RoomNotFoundError,
)

__all__: list[str] = [
    "ConcurrentStageModificationError",
    "InvalidStageError",
    "RoomNotFoundError",
]
