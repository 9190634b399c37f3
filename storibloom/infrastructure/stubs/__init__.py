"""In-memory stub implementations of the workshop ports.

For development and testing. NOT suitable for production use.
"""

from storibloom.infrastructure.stubs.completion_stub import (
    CompletionCall,
    CompletionStub,
)
from storibloom.infrastructure.stubs.message_store_stub import MessageStoreStub
from storibloom.infrastructure.stubs.room_repository_stub import RoomRepositoryStub

__all__: list[str] = [
    "CompletionCall",
    "CompletionStub",
    "MessageStoreStub",
    "RoomRepositoryStub",
]
