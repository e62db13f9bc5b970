"""
Program Coach — Response Resolver.

Turns one inbound text message into at most one reply. Checked in order,
first match wins:

1. Scope filter — group/room text must start with "#", otherwise no reply.
2. Commands — help, status, debug, FAQ probe, start, restart, 第N天,
   today's menu, companion reminder, time slot.
3. AI trigger — 「請問…」 goes to the rate-limited AI gateway.
4. FAQ — keyword-scored static answers.
5. Beverage quick-catch.
6. Fallback guidance.

respond() is the only place a per-message fault is turned into a
user-visible apology; nothing raised below it escapes to the webhook.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from coachbot.core.commands import (
    AskAI, Companion, DebugStart, FaqProbe, FreeText, Help, Restart, SetDay,
    Start, Status, TimeSlot, TodayMenu, classify, strip_command_marker,
)
from coachbot.core.faq_matcher import FAQMatcher
from coachbot.core.normalizer import fold
from coachbot.data.knowledge import TIME_SLOTS
from coachbot.data.models import PROGRAM_DAYS

if TYPE_CHECKING:
    from coachbot.core.ai_gateway import AIGateway
    from coachbot.core.program_clock import ProgramClock
    from coachbot.data.knowledge import KnowledgeTables
    from coachbot.data.models import ConversationIdentity
    from coachbot.data.state_store import InMemoryStateStore

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "我剛剛處理時遇到小問題，已經記錄起來了。可以麻煩你再傳一次嗎？😊"

FIRST_DAY_COMPANION = "第一天最重要的不是完美，而是開始。你願意踏出這一步，本身就很棒了。"
SET_DAY_COMPANION = "我們一步一步來就好 😊"
DEFAULT_COMPANION = "今天不用完美，方向對就很好 😊"

START_FIRST_HINT = "請先回我「開始」，或告訴我你目前是第幾天（例如：第12天）。"

BEVERAGE_WORDS = ("咖啡", "茶", "飲料", "酒")
BEVERAGE_ADVICE = "45 天計畫期間，茶、咖啡等刺激性飲料建議盡量不要，以白開水或溫水為主會最穩。"

FALLBACK_MESSAGE = (
    "我在這裡 😊\n"
    "你可以回：開始 / 第12天 / 今天菜單 / 今天是哪一天 / 08:00 / 12:00 / 18:00 / 陪伴提醒\n"
    "想問問題可以用「請問」開頭，或打「使用說明」。"
)


def help_text() -> str:
    return (
        "你可以這樣說 😊\n"
        f"1) 回「開始」：我會從今天幫你記錄 {PROGRAM_DAYS} 天進度\n"
        "2) 回「第12天」：如果你已經在進行中，我可以直接對齊進度\n"
        "3) 回「今天菜單」或「今天是哪一天」：我會告訴你今天第幾天＋日型＋重點提醒\n"
        "4) 回任一時間（如 08:00 / 12:00 / 18:00）：我回該時段菜單細節\n"
        "5) 回「陪伴提醒」：我送你今天專屬的一句鼓勵\n"
        "6) 用「請問」開頭問問題：我會從資料中幫你找答案\n"
        "7) 回「重新開始」：從今天重新計算第 1 天\n"
        "也可以直接問外食、份量、嘴饞怎麼辦等問題\n"
        "（在群組裡請在訊息前加上 #，例如：#今天菜單）"
    )


class ResponseResolver:
    """Ordered decision pipeline from one message to one reply."""

    def __init__(
        self,
        knowledge: KnowledgeTables,
        store: InMemoryStateStore,
        clock: ProgramClock,
        ai_gateway: AIGateway,
    ) -> None:
        self._knowledge = knowledge
        self._store = store
        self._clock = clock
        self._ai = ai_gateway
        self._faq = FAQMatcher(knowledge.faq_items)

    # -----------------------------------------------------------------------
    # Entry point
    # -----------------------------------------------------------------------

    async def respond(self, identity: ConversationIdentity, text: str) -> str | None:
        """Return the reply for *text*, or None when the message is ignored."""
        try:
            return await self._resolve(identity, text)
        except Exception:
            logger.exception(
                "Failed to handle message from %s %s", identity.kind.value, identity.id,
            )
            return ERROR_MESSAGE

    async def _resolve(self, identity: ConversationIdentity, text: str) -> str | None:
        body = strip_command_marker(text, identity.is_multi_party)
        if body is None:
            return None

        command = classify(body)
        cid = identity.id

        if isinstance(command, Help):
            return help_text()
        if isinstance(command, Status):
            return self._status()
        if isinstance(command, DebugStart):
            return self._debug_start(cid)
        if isinstance(command, FaqProbe):
            return self._faq_probe(command.query)
        if isinstance(command, Start):
            return await self._start(cid)
        if isinstance(command, Restart):
            return self._restart(cid)
        if isinstance(command, SetDay):
            return self._set_day(cid, command.day)
        if isinstance(command, TodayMenu):
            return await self._today_menu(cid)
        if isinstance(command, Companion):
            return await self._companion(cid)
        if isinstance(command, TimeSlot):
            return await self._time_slot(cid, command.slot)
        if isinstance(command, AskAI):
            return await self._ai.ask(cid, command.text)
        if isinstance(command, FreeText):
            return self._answer_free_text(command.text)

        raise TypeError(f"Unhandled command: {command!r}")

    # -----------------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------------

    def _status(self) -> str:
        kb = self._knowledge
        return (
            f"today={self._clock.today().isoformat()} | FAQ={len(kb.faq_items)} | "
            f"dayTypeMap={len(kb.day_types)} | menuTypes={len(kb.menu_details)}"
        )

    def _debug_start(self, cid: str) -> str:
        cached = self._store.cached_start(cid)
        return (
            f"today={self._clock.today().isoformat()}\n"
            f"startISO(inMemory)={cached.isoformat() if cached else '(none)'}"
        )

    def _faq_probe(self, query: str) -> str:
        best = self._faq.probe(query)
        return (
            f"Q={query}\nscore={best.score}\nid={best.item_id}\n"
            f"ans={best.answer or '(no match)'}"
        )

    # -----------------------------------------------------------------------
    # Program state commands
    # -----------------------------------------------------------------------

    def _day_header(self, day: int) -> str:
        day_type = self._knowledge.day_type(day)
        return f"【第 {day} 天・{day_type.label}】"

    async def _start(self, cid: str) -> str:
        existing = await self._store.ensure_start(cid)
        if existing is not None:
            day = self._clock.current_day(existing)
            return (
                f"你已經在進行中囉，今天是{self._day_header(day)} ✅\n"
                "如果想從今天重新計算，請回我「重新開始」。"
            )

        self._store.set_start(cid, self._clock.today())
        logger.info("Program started for %s", cid)
        return self._started_message(
            day=1,
            intro="已幫你從今天開始 ✅",
            fallback_companion=FIRST_DAY_COMPANION,
        )

    def _restart(self, cid: str) -> str:
        self._store.set_start(cid, self._clock.today())
        logger.info("Program restarted for %s", cid)
        return self._started_message(
            day=1,
            intro="已幫你從今天重新開始 ✅",
            fallback_companion=FIRST_DAY_COMPANION,
        )

    def _started_message(self, day: int, intro: str, fallback_companion: str) -> str:
        day_type = self._knowledge.day_type(day)
        companion = self._knowledge.companion(day) or fallback_companion
        return (
            f"{intro}\n"
            f"今天是{self._day_header(day)}\n"
            f"{self._knowledge.push_template(day_type)}\n\n"
            f"💛 今日陪伴：{companion}\n\n"
            "你可以回我：\n- 今天菜單 / 今天是哪一天\n"
            "- 07:45 / 08:00 / 12:00 / 18:00（看時段細節）\n"
            "- 陪伴提醒\n- 第12天（對齊進度）"
        )

    def _set_day(self, cid: str, day: int) -> str:
        if not 1 <= day <= PROGRAM_DAYS:
            return f"天數要在 1 到 {PROGRAM_DAYS} 之間喔，例如：第12天 😊"

        self._store.set_start(cid, self._clock.build_start_from_day(day))
        logger.info("Program day set to %d for %s", day, cid)

        day_type = self._knowledge.day_type(day)
        companion = self._knowledge.companion(day) or SET_DAY_COMPANION
        return (
            f"收到！我已把你進度設定為【第 {day} 天】✅\n"
            f"今天日型是【{day_type.label}】\n"
            f"{self._knowledge.push_template(day_type)}\n\n"
            f"💛 今日陪伴：{companion}\n\n"
            "你可以回我：今天菜單 / 08:00 / 12:00 / 18:00 / 陪伴提醒"
        )

    async def _current_day(self, cid: str) -> int | None:
        start = await self._store.ensure_start(cid)
        if start is None:
            return None
        return self._clock.current_day(start)

    async def _today_menu(self, cid: str) -> str:
        day = await self._current_day(cid)
        if day is None:
            return f"我可以幫你算今天第幾天與日型 😊\n{START_FIRST_HINT}"

        day_type = self._knowledge.day_type(day)
        companion = self._knowledge.companion(day) or DEFAULT_COMPANION
        return (
            f"今天是{self._day_header(day)}\n"
            f"{self._knowledge.push_template(day_type)}\n\n"
            f"💛 今日陪伴：{companion}\n\n"
            f"要看細節可以回我：\n{' / '.join(TIME_SLOTS)}"
        )

    async def _companion(self, cid: str) -> str:
        day = await self._current_day(cid)
        if day is None:
            return f"我可以給你今天專屬的陪伴提醒 😊\n{START_FIRST_HINT}"
        return self._knowledge.companion(day) or DEFAULT_COMPANION

    async def _time_slot(self, cid: str, slot: str) -> str:
        day = await self._current_day(cid)
        if day is None:
            return f"我可以給你該時段菜單 😊\n{START_FIRST_HINT}"

        day_type = self._knowledge.day_type(day)
        detail = self._knowledge.slot_detail(day_type, slot)
        if not detail:
            return (
                f"我查到你今天是【{day_type.label}】，但目前這個時段沒有細節。\n"
                "你可以改問「今天菜單」。"
            )
        return f"{self._day_header(day)}\n⏰ {slot}\n{detail}"

    # -----------------------------------------------------------------------
    # Free text
    # -----------------------------------------------------------------------

    def _answer_free_text(self, text: str) -> str:
        answer = self._faq.match(text)
        if answer:
            return answer

        folded = fold(text)
        if any(word in folded for word in BEVERAGE_WORDS):
            return BEVERAGE_ADVICE

        return FALLBACK_MESSAGE
