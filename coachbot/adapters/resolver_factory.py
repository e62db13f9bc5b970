"""Resolver factory — wires the response pipeline from settings."""

from __future__ import annotations

import logging
from pathlib import Path

from coachbot.adapters.knowledge_answerer import KnowledgeBaseAnswerer
from coachbot.adapters.sheet_store import SheetStore
from coachbot.config import settings
from coachbot.core.ai_gateway import AIGateway
from coachbot.core.program_clock import ProgramClock
from coachbot.core.resolver import ResponseResolver
from coachbot.data.knowledge import load_knowledge
from coachbot.data.state_store import CachedStateStore, InMemoryStateStore

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def _knowledge_dir() -> Path:
    path = Path(settings.KNOWLEDGE_DIR)
    return path if path.is_absolute() else _PROJECT_ROOT / path


def create_state_store() -> InMemoryStateStore:
    """Cache + sheet when the durable store is configured, else memory only."""
    sheet = SheetStore(settings.STORE_URL, settings.STORE_KEY)
    if sheet.configured:
        return CachedStateStore(sheet)
    return InMemoryStateStore()


def create_ai_gateway() -> AIGateway:
    """Gateway with a knowledge-base backend, or an unconfigured one.

    Needs a vector store id, a key that can search it and a key for the
    LLM provider. Anything missing leaves AI answers disabled.
    """
    backend = None
    search_key = settings.knowledge_search_key
    if settings.KNOWLEDGE_BASE_ID and search_key and settings.LLM_API_KEY:
        backend = KnowledgeBaseAnswerer(
            vector_store_id=settings.KNOWLEDGE_BASE_ID,
            search_api_key=search_key,
        )

    gateway = AIGateway(
        backend,
        cooldown_seconds=settings.AI_COOLDOWN_SECONDS,
        timeout_seconds=settings.AI_TIMEOUT_SECONDS,
    )
    if not gateway.configured:
        logger.warning(
            "AI answers disabled (KNOWLEDGE_BASE_ID, OPENAI_API_KEY or LLM_API_KEY missing)"
        )
    return gateway


def create_resolver(
    store: InMemoryStateStore | None = None,
) -> ResponseResolver:
    """Return a ResponseResolver built from the current settings.

    Args:
        store: State store to use. Defaults to create_state_store().
    """
    return ResponseResolver(
        knowledge=load_knowledge(_knowledge_dir()),
        store=store if store is not None else create_state_store(),
        clock=ProgramClock(settings.TIMEZONE),
        ai_gateway=create_ai_gateway(),
    )
