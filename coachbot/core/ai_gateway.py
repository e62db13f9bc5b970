"""
Program Coach — Rate-Limited AI Gateway.

Guards the LLM backend with a per-conversation cooldown. The cooldown slot
is spent BEFORE the backend is awaited: two near-simultaneous messages
from one conversation cannot both pass the gate, and a failed call still
counts against the sender.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Callable

from coachbot.core.commands import AI_TRIGGER
from coachbot.ports.answer_port import RateLimitedError

if TYPE_CHECKING:
    from coachbot.ports.answer_port import AnswerBackend

logger = logging.getLogger(__name__)

ANSWER_POLICY = """\
你是「45 天計畫」的問答助理，只能根據提供的參考資料回答。

規則：
1. 只使用參考資料中的內容回答，不要自行補充或推測。
2. 如果參考資料沒有相關內容，請直接回答：「資料中沒有找到這個問題的相關說明。」
3. 以條列方式回答，每一個條列最後都要加上來源標記，例如 [1]、[2]，對應參考資料的編號。
4. 使用繁體中文，語氣溫暖、簡潔。
"""

USAGE_HINT = "想問問題的話，請在「請問」後面接上你的問題，例如：請問腸道健康跟什麼有關係？"
COOLDOWN_MESSAGE = "我還在整理上一個問題的答案，請等 20 秒後再問我喔 🙏"
RATE_LIMITED_MESSAGE = "目前詢問的人比較多，請過一分鐘後再試一次 🙏"
NOT_CONFIGURED_MESSAGE = "AI 問答功能還沒有設定完成，可以先打「使用說明」看看我能幫你什麼 😊"


def strip_trigger(text: str) -> str:
    question = (text or "").strip()
    if question.startswith(AI_TRIGGER):
        question = question[len(AI_TRIGGER):]
    return question.strip()


class AIGateway:
    """Per-conversation cooldown in front of an AnswerBackend.

    Args:
        backend: The answering backend, or None when not configured.
        cooldown_seconds: Minimum spacing between accepted questions.
        timeout_seconds: Upper bound on one backend call.
        clock: Monotonic seconds source, for tests.
    """

    def __init__(
        self,
        backend: AnswerBackend | None,
        cooldown_seconds: float = 20.0,
        timeout_seconds: float = 20.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._backend = backend
        self._cooldown = cooldown_seconds
        self._timeout = timeout_seconds
        self._clock = clock
        self._last_call: dict[str, float] = {}

    @property
    def configured(self) -> bool:
        return self._backend is not None

    async def ask(self, conversation_id: str, text: str) -> str:
        """Answer *text* (with or without the trigger phrase) for a conversation.

        Raises whatever the backend raises, except RateLimitedError which
        is turned into a retry message.
        """
        question = strip_trigger(text)
        if not question:
            return USAGE_HINT

        if self._backend is None:
            logger.warning("AI question received but no knowledge base is configured")
            return NOT_CONFIGURED_MESSAGE

        now = self._clock()
        last = self._last_call.get(conversation_id)
        if last is not None and now - last < self._cooldown:
            logger.info(
                "AI cooldown active for %s (%.1fs left)",
                conversation_id, self._cooldown - (now - last),
            )
            return COOLDOWN_MESSAGE

        self._last_call[conversation_id] = now

        try:
            return await asyncio.wait_for(
                self._backend.answer(ANSWER_POLICY, question),
                timeout=self._timeout,
            )
        except RateLimitedError as exc:
            logger.warning("AI backend rate-limited for %s: %s", conversation_id, exc)
            return RATE_LIMITED_MESSAGE
