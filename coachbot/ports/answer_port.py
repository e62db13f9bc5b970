"""Answer port — abstract interface for the LLM question-answering backend."""

from __future__ import annotations

from typing import Protocol


class RateLimitedError(Exception):
    """Raised when the answering backend (or one of its providers) is rate-limited."""


class AnswerBackend(Protocol):
    """Answers a question under a pinned system policy.

    Raises RateLimitedError on rate limits; any other exception is a
    backend failure the caller must handle.
    """

    async def answer(self, system_policy: str, question: str) -> str: ...
