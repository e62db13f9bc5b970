"""LINE reply adapter — implements ReplyPort.

Sends a single text message through the Messaging API reply endpoint.
"""

from __future__ import annotations

import logging

import httpx

from coachbot.ports.messaging_port import MessagingError

logger = logging.getLogger(__name__)

_REPLY_URL = "https://api.line.me/v2/bot/message/reply"
_TIMEOUT_SECONDS = 10
_MAX_TEXT_LENGTH = 5000


class LineMessenger:
    """LINE Messaging API implementation of ReplyPort."""

    def __init__(self, channel_access_token: str) -> None:
        self._token = channel_access_token

    async def send(self, reply_handle: str, text: str) -> None:
        if len(text) > _MAX_TEXT_LENGTH:
            text = text[: _MAX_TEXT_LENGTH - 1] + "…"

        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                resp = await client.post(
                    _REPLY_URL,
                    json={
                        "replyToken": reply_handle,
                        "messages": [{"type": "text", "text": text}],
                    },
                    headers={"Authorization": f"Bearer {self._token}"},
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise MessagingError(f"LINE reply failed: {exc}") from exc
