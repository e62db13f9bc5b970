"""Durable store port — key-value persistence of program start dates.

Implementations are best-effort: they return None / do nothing on any
failure instead of raising.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol


class DurableStore(Protocol):
    """Abstract durable store used by the conversation state store."""

    async def get(self, key: str) -> date | None: ...

    async def put(self, key: str, start_date: date) -> None: ...
