"""Completion stub implementation.

Stands in for the language model. Returns queued responses first, then a
canned default, and records every prompt it receives.
"""

from __future__ import annotations

from dataclasses import dataclass

from storibloom.application.ports.completion import CompletionProtocol

DEFAULT_STUB_RESPONSE = "Stub facilitator response."


@dataclass(frozen=True)
class CompletionCall:
    """One recorded completion request."""

    system: str
    prompt: str
    max_tokens: int
    temperature: float


class CompletionStub(CompletionProtocol):
    """Deterministic stub implementation of CompletionProtocol.

    Attributes:
        calls: Every request received, oldest first.
        fail: When True, every call raises RuntimeError.
    """

    def __init__(self, default_response: str = DEFAULT_STUB_RESPONSE) -> None:
        self._default = default_response
        self._queued: list[str] = []
        self.calls: list[CompletionCall] = []
        self.fail = False

    def queue_response(self, *responses: str) -> None:
        """Queue responses returned by the next calls, in order."""
        self._queued.extend(responses)

    async def complete(
        self,
        system: str,
        prompt: str,
        *,
        max_tokens: int = 256,
        temperature: float = 0.5,
    ) -> str:
        self.calls.append(
            CompletionCall(
                system=system,
                prompt=prompt,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        )
        if self.fail:
            raise RuntimeError("Simulated completion failure")
        if self._queued:
            return self._queued.pop(0).strip()
        return self._default.strip()

    @property
    def call_count(self) -> int:
        """Number of completion requests received."""
        return len(self.calls)
