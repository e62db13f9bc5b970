"""FAQ matching by keyword overlap.

Each matched keyword contributes min(3, ceil(len/2)) points, so longer,
more specific keywords outweigh many short ones that tend to match by
accident. The first item reaching the top score wins.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from coachbot.core.normalizer import fold
from coachbot.data.models import FAQItem

logger = logging.getLogger(__name__)

_MAX_KEYWORD_SCORE = 3
_MIN_MATCH_SCORE = 1


@dataclass
class FAQMatch:
    """Best-scoring FAQ item for a question (score 0 → no match)."""

    score: int
    item_id: str | None
    answer: str | None


def keyword_score(folded_keyword: str) -> int:
    return min(_MAX_KEYWORD_SCORE, math.ceil(len(folded_keyword) / 2))


class FAQMatcher:
    """Scores FAQ items against a user question."""

    def __init__(self, items: Iterable[FAQItem]) -> None:
        # Fold keywords once; items without keywords or answer never match.
        self._entries: list[tuple[FAQItem, list[str]]] = []
        for item in items:
            if not item.keywords or not item.answer:
                continue
            folded = [kw for kw in (fold(raw) for raw in item.keywords) if kw]
            self._entries.append((item, folded))

    def __len__(self) -> int:
        return len(self._entries)

    def probe(self, text: str) -> FAQMatch:
        """Return the best-scoring item, whatever its score."""
        folded_text = fold(text)
        best = FAQMatch(score=0, item_id=None, answer=None)
        if not folded_text:
            return best

        for item, keywords in self._entries:
            score = sum(keyword_score(kw) for kw in keywords if kw in folded_text)
            if score > best.score:
                best = FAQMatch(score=score, item_id=item.id, answer=item.answer)
        return best

    def match(self, text: str) -> str | None:
        """Return the best answer scoring at least 1 point, else None."""
        best = self.probe(text)
        if best.score >= _MIN_MATCH_SCORE:
            logger.debug("FAQ hit %s (score=%d)", best.item_id, best.score)
            return best.answer
        return None
