"""Text normalization for command and FAQ matching. Pure functions, no I/O."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"[，。！？、,.!?]")

# Applied in order; each rule sees the output of the previous ones.
SYNONYM_RULES: tuple[tuple[str, str], ...] = (
    ("今天哪一天", "今天是哪一天"),
    ("今天哪天", "今天是哪一天"),
    ("幾天", "第幾天"),
    ("喝茶", "茶"),
    ("咖啡因", "咖啡"),
    ("酒精", "酒"),
    ("手搖飲", "飲料"),
    ("珍珠奶茶", "珍奶"),
)


def normalize(text: str | None) -> str:
    """Lowercase, collapse whitespace, drop punctuation and trim."""
    out = (text or "").lower()
    out = _PUNCTUATION_RE.sub("", out)
    out = _WHITESPACE_RE.sub(" ", out)
    return out.strip()


def apply_synonyms(text: str) -> str:
    out = text
    for pattern, replacement in SYNONYM_RULES:
        out = out.replace(pattern, replacement)
    return out


def fold(text: str | None) -> str:
    """normalize() followed by apply_synonyms() — the FAQ matching form."""
    return apply_synonyms(normalize(text))
