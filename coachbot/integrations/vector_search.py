"""OpenAI vector store search — retrieval over the program's reference documents.

The knowledge base is an OpenAI vector store (KNOWLEDGE_BASE_ID). A query
returns the most relevant chunks with the file they came from, which the
answerer later cites.

Unlike the optional integrations, failures here are NOT swallowed: a
rate limit becomes RateLimitedError, anything else propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from openai import AsyncOpenAI

from coachbot.core.llm import is_rate_limit_error
from coachbot.ports.answer_port import RateLimitedError

logger = logging.getLogger(__name__)

_MAX_RESULTS = 5
_MAX_EXCERPT_CHARS = 1200


@dataclass
class Excerpt:
    """One retrieved chunk of a reference document."""

    source: str      # file name in the vector store
    text: str
    score: float


async def search_excerpts(
    query: str,
    vector_store_id: str,
    api_key: str,
    max_results: int = _MAX_RESULTS,
) -> list[Excerpt]:
    """Search the vector store and return excerpts, best first."""
    if not query or not vector_store_id:
        return []

    client = AsyncOpenAI(api_key=api_key)
    try:
        page = await client.vector_stores.search(
            vector_store_id=vector_store_id,
            query=query,
            max_num_results=max_results,
        )
    except Exception as exc:
        if is_rate_limit_error(exc):
            logger.warning("Vector store search rate-limited: %s", exc)
            raise RateLimitedError(str(exc)) from exc
        raise

    excerpts: list[Excerpt] = []
    for result in page.data:
        text = "\n".join(
            part.text for part in (result.content or []) if getattr(part, "text", None)
        ).strip()
        if not text:
            continue
        excerpts.append(Excerpt(
            source=result.filename or result.file_id,
            text=text[:_MAX_EXCERPT_CHARS],
            score=float(result.score or 0.0),
        ))

    logger.info("Vector store search returned %d excerpts for %r", len(excerpts), query)
    return excerpts
