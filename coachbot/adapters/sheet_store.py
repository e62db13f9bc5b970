"""Sheet-backed durable store — implements DurableStore.

Talks to a Google Apps Script web app that keeps one row per conversation:

    GET {STORE_URL}?action=get&id=<id>&key=<secret>               -> "YYYY-MM-DD" | ""
    GET {STORE_URL}?action=upsert&id=<id>&date=<date>&key=<secret> -> ack

Gracefully degrades: without URL or secret every call is a no-op, and any
network or parsing failure is logged and treated as "not found".
"""

from __future__ import annotations

import logging
from datetime import date

import httpx

logger = logging.getLogger(__name__)

_TIMEOUT_SECONDS = 5


class SheetStore:
    """Apps Script implementation of DurableStore."""

    def __init__(self, base_url: str, secret: str) -> None:
        self._base_url = base_url
        self._secret = secret
        if not self.configured:
            logger.warning("STORE_URL or STORE_KEY missing — durable store disabled")

    @property
    def configured(self) -> bool:
        return bool(self._base_url and self._secret)

    async def get(self, key: str) -> date | None:
        if not self.configured:
            return None

        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS, follow_redirects=True) as client:
                resp = await client.get(
                    self._base_url,
                    params={"action": "get", "id": key, "key": self._secret},
                )
                resp.raise_for_status()
                body = resp.text.strip()
        except Exception as exc:
            logger.warning("Durable store lookup failed for %s: %s", key, exc)
            return None

        if not body:
            return None

        try:
            return date.fromisoformat(body[:10])
        except ValueError:
            logger.warning("Durable store returned malformed date for %s: %r", key, body[:40])
            return None

    async def put(self, key: str, start_date: date) -> None:
        if not self.configured:
            return

        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS, follow_redirects=True) as client:
                resp = await client.get(
                    self._base_url,
                    params={
                        "action": "upsert",
                        "id": key,
                        "date": start_date.isoformat(),
                        "key": self._secret,
                    },
                )
                resp.raise_for_status()
            logger.info("Durable store upsert %s=%s status=%d", key, start_date, resp.status_code)
        except Exception as exc:
            logger.warning("Durable store upsert failed for %s: %s", key, exc)
