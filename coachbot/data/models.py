"""
Program Coach — Data Models.

Conversation identity, day types and the static knowledge records.
Program state is just a start date per conversation (see state_store).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

PROGRAM_DAYS = 45


class ConversationKind(str, Enum):
    DIRECT = "direct"
    GROUP = "group"
    ROOM = "room"


@dataclass(frozen=True)
class ConversationIdentity:
    """A chat scope: a 1:1 chat, a group or a multi-person room."""

    kind: ConversationKind
    id: str

    @property
    def is_multi_party(self) -> bool:
        return self.kind is not ConversationKind.DIRECT


class DayType(str, Enum):
    """Scripted category of a program day."""

    PREP = "PREP"
    PROTEIN_CONSECUTIVE = "PROTEIN_CONSECUTIVE"
    PROTEIN_SINGLE = "PROTEIN_SINGLE"
    SLIM_FIRST = "SLIM_FIRST"
    SLIM = "SLIM"
    METABOLIC = "METABOLIC"

    @property
    def label(self) -> str:
        return _DAY_TYPE_LABELS[self]


_DAY_TYPE_LABELS = {
    DayType.PREP: "準備日",
    DayType.PROTEIN_CONSECUTIVE: "連續蛋白日",
    DayType.PROTEIN_SINGLE: "單日蛋白日",
    DayType.SLIM_FIRST: "第一次纖體日",
    DayType.SLIM: "纖體日",
    DayType.METABOLIC: "新陳代謝日",
}


class FAQItem(BaseModel):
    """One FAQ entry as stored in the knowledge JSON.

    JSON example:
    {
        "id": "faq07",
        "keywords": ["外食", "便當"],
        "answer": "外食時優先選擇..."
    }
    """
    id: str | None = None
    keywords: list[str] = Field(default_factory=list)
    answer: str = ""
