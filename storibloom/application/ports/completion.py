"""AI completion port.

The language model call is opaque to the core: it takes a system prompt and
a user prompt and produces text, or fails.
"""

from __future__ import annotations

from typing import Protocol


class CompletionProtocol(Protocol):
    """Protocol for a single chat completion call."""

    async def complete(
        self,
        system: str,
        prompt: str,
        *,
        max_tokens: int = 256,
        temperature: float = 0.5,
    ) -> str:
        """Generate text.

        Args:
            system: Facilitator system prompt.
            prompt: Task prompt.
            max_tokens: Upper bound on generated tokens.
            temperature: Sampling temperature.

        Returns:
            Generated text, stripped. May be empty.

        Raises:
            Exception: Any provider failure; callers decide how to absorb it.
        """
        ...
