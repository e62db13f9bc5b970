"""
Program Coach — Conversation State Store.

Holds each conversation's program start date. The in-process map is
authoritative for the process lifetime; the durable store only backs it up
across restarts.

Mutations happen synchronously between suspension points, so two messages
from the same conversation never need a lock: the last write wins.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from coachbot.ports.store_port import DurableStore

logger = logging.getLogger(__name__)


class InMemoryStateStore:
    """Process-local start dates. Used in tests and when no durable store is set."""

    def __init__(self) -> None:
        self._starts: dict[str, date] = {}

    def cached_start(self, conversation_id: str) -> date | None:
        return self._starts.get(conversation_id)

    async def ensure_start(self, conversation_id: str) -> date | None:
        return self._starts.get(conversation_id)

    def set_start(self, conversation_id: str, start_date: date) -> None:
        self._starts[conversation_id] = start_date

    async def drain(self) -> None:
        """Nothing is ever pending for the in-memory store."""


class CachedStateStore(InMemoryStateStore):
    """In-memory cache in front of a best-effort durable store.

    ensure_start(): cache → durable lookup (populating the cache) → None.
    A failing durable lookup counts as "not found".
    set_start(): cache write now, durable write-behind in a detached task.
    """

    def __init__(self, durable: DurableStore) -> None:
        super().__init__()
        self._durable = durable
        self._pending: set[asyncio.Task] = set()

    async def ensure_start(self, conversation_id: str) -> date | None:
        cached = self._starts.get(conversation_id)
        if cached is not None:
            return cached

        try:
            stored = await self._durable.get(conversation_id)
        except Exception as exc:
            logger.warning("Durable lookup failed for %s: %s", conversation_id, exc)
            return None
        if stored is None:
            return None

        # A set_start() may have landed while we were waiting on the store.
        return self._starts.setdefault(conversation_id, stored)

    def set_start(self, conversation_id: str, start_date: date) -> None:
        super().set_start(conversation_id, start_date)
        task = asyncio.create_task(self._write_behind(conversation_id, start_date))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_behind(self, conversation_id: str, start_date: date) -> None:
        try:
            await self._durable.put(conversation_id, start_date)
        except Exception as exc:
            logger.warning(
                "Durable write failed for %s (%s): %s",
                conversation_id, start_date.isoformat(), exc,
            )

    async def drain(self) -> None:
        """Wait for outstanding write-behind tasks (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
