"""Knowledge-base answerer — implements AnswerBackend.

Retrieval (OpenAI vector store) followed by synthesis with the configured
LLM provider. Excerpts are numbered so the model can tag every bullet
with the excerpt it came from.
"""

from __future__ import annotations

import logging

from coachbot.core.llm import complete
from coachbot.integrations.vector_search import Excerpt, search_excerpts

logger = logging.getLogger(__name__)

NOT_FOUND_ANSWER = "資料中沒有找到這個問題的相關說明，建議直接詢問你的陪伴老師喔。"


def format_excerpts(excerpts: list[Excerpt]) -> str:
    """Render excerpts as numbered reference blocks: [1] (file.pdf) ..."""
    blocks = [
        f"[{i}] ({excerpt.source})\n{excerpt.text}"
        for i, excerpt in enumerate(excerpts, start=1)
    ]
    return "\n\n".join(blocks)


class KnowledgeBaseAnswerer:
    """AnswerBackend backed by a vector store plus an LLM provider."""

    def __init__(self, vector_store_id: str, search_api_key: str) -> None:
        self._vector_store_id = vector_store_id
        self._search_api_key = search_api_key

    async def answer(self, system_policy: str, question: str) -> str:
        excerpts = await search_excerpts(
            question, self._vector_store_id, self._search_api_key,
        )
        if not excerpts:
            logger.info("No reference excerpts for %r", question)
            return NOT_FOUND_ANSWER

        user_message = (
            f"參考資料：\n{format_excerpts(excerpts)}\n\n"
            f"問題：{question}"
        )
        answer = await complete(system_policy, user_message)
        return answer.strip() or NOT_FOUND_ANSWER
