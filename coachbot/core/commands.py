"""
Program Coach — Command classification.

One pass over the normalized message text produces exactly one Command
value. The resolver then handles the variants in precedence order, so
the order of checks in classify() IS the command precedence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from coachbot.core.normalizer import normalize
from coachbot.data.knowledge import TIME_SLOTS

COMMAND_MARKER = "#"
AI_TRIGGER = "請問"

HELP_WORDS = frozenset({"help", "幫助", "使用說明"})
STATUS_WORDS = frozenset({"狀態", "status"})
DEBUG_START_WORDS = frozenset({"debug-start"})
FAQ_PROBE_PREFIX = "faq測試"
START_WORDS = frozenset({"開始", "start"})
RESTART_WORDS = frozenset({"重新開始", "restart"})
TODAY_MENU_WORDS = frozenset({
    "今天菜單", "今日菜單", "今天是哪一天", "今天是哪天", "今天哪一天", "今天哪天",
})
COMPANION_WORDS = frozenset({"陪伴提醒", "鼓勵我", "提醒我"})

_SET_DAY_RE = re.compile(r"第 ?(\d{1,3}) ?天")


# ---------------------------------------------------------------------------
# Command variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Status:
    pass


@dataclass(frozen=True)
class DebugStart:
    pass


@dataclass(frozen=True)
class FaqProbe:
    """「FAQ測試 <question>」 — show how the FAQ matcher scores a question."""
    query: str


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Restart:
    pass


@dataclass(frozen=True)
class SetDay:
    """「第N天」 — day is NOT range-checked here; the resolver validates it."""
    day: int


@dataclass(frozen=True)
class TodayMenu:
    pass


@dataclass(frozen=True)
class Companion:
    pass


@dataclass(frozen=True)
class TimeSlot:
    slot: str  # one of TIME_SLOTS


@dataclass(frozen=True)
class AskAI:
    """Message starting with the AI trigger; text is passed on unstripped."""
    text: str


@dataclass(frozen=True)
class FreeText:
    """Anything else — goes to the FAQ matcher and the fallbacks."""
    text: str


Command = (
    Help | Status | DebugStart | FaqProbe | Start | Restart | SetDay
    | TodayMenu | Companion | TimeSlot | AskAI | FreeText
)


# ---------------------------------------------------------------------------
# Scope filter & classification
# ---------------------------------------------------------------------------


def strip_command_marker(text: str, multi_party: bool) -> str | None:
    """Apply the group/room gating rule.

    Returns the text to process, or None when the message must be
    silently dropped (group/room text without the marker, or a bare marker).
    """
    stripped = (text or "").strip()
    if not multi_party:
        return stripped
    if not stripped.startswith(COMMAND_MARKER):
        return None
    remainder = stripped[len(COMMAND_MARKER):].strip()
    return remainder or None


def classify(text: str) -> Command:
    """Map one (already scope-filtered) message to its Command."""
    raw = (text or "").strip()
    norm = normalize(raw)

    if norm in HELP_WORDS:
        return Help()
    if norm in STATUS_WORDS:
        return Status()
    if norm in DEBUG_START_WORDS:
        return DebugStart()
    if raw.lower().startswith(FAQ_PROBE_PREFIX):
        return FaqProbe(query=raw[len(FAQ_PROBE_PREFIX):].strip())
    if norm in START_WORDS:
        return Start()
    if norm in RESTART_WORDS:
        return Restart()

    day_match = _SET_DAY_RE.fullmatch(norm)
    if day_match:
        return SetDay(day=int(day_match.group(1)))

    if norm in TODAY_MENU_WORDS:
        return TodayMenu()
    if norm in COMPANION_WORDS:
        return Companion()
    if norm in TIME_SLOTS:
        return TimeSlot(slot=norm)
    if raw.startswith(AI_TRIGGER):
        return AskAI(text=raw)
    return FreeText(text=raw)
