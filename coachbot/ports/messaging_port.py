"""Messaging port — abstract interface for replying to a conversation.

Core modules depend on this protocol, never on a specific messaging provider.
"""

from __future__ import annotations

from typing import Protocol


class MessagingError(Exception):
    """Raised when the messaging provider rejects or fails a reply."""


class ReplyPort(Protocol):
    """Abstract reply interface used by the webhook layer."""

    async def send(self, reply_handle: str, text: str) -> None: ...
