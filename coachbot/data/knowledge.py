"""
Program Coach — Knowledge Tables.

Static scripted content loaded once at boot from the knowledge/ directory:

- day_type_map.json               {"1": "PREP", ...}
- menu_details_by_day_type.json   {"PREP": {"08:00": "...", ...}, ...}
- push_templates.json             {"PREP": "...", ...}
- companion_by_day.json           {"1": "...", ...}
- faq.json                        {"items": [{"keywords": [...], "answer": "..."}]}

A missing or malformed file is replaced by an empty table so the bot can
still boot in a degraded state.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from coachbot.data.models import PROGRAM_DAYS, DayType, FAQItem

logger = logging.getLogger(__name__)

TIME_SLOTS: tuple[str, ...] = (
    "07:45", "08:00", "10:00", "11:45", "12:00",
    "14:00", "16:00", "17:45", "18:00", "20:00",
)


@dataclass(frozen=True)
class KnowledgeTables:
    """Immutable lookup tables consulted by the resolver."""

    day_types: dict[int, DayType] = field(default_factory=dict)
    menu_details: dict[DayType, dict[str, str]] = field(default_factory=dict)
    push_templates: dict[DayType, str] = field(default_factory=dict)
    companion_by_day: dict[int, str] = field(default_factory=dict)
    faq_items: tuple[FAQItem, ...] = ()

    def day_type(self, day: int) -> DayType:
        return self.day_types.get(day, DayType.SLIM)

    def push_template(self, day_type: DayType) -> str:
        return self.push_templates.get(day_type, "")

    def companion(self, day: int) -> str | None:
        return self.companion_by_day.get(day)

    def slot_detail(self, day_type: DayType, slot: str) -> str | None:
        return self.menu_details.get(day_type, {}).get(slot)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _safe_load_json(path: Path, fallback: Any) -> Any:
    """Read a JSON file, returning *fallback* when missing or malformed."""
    if not path.exists():
        logger.warning("Missing knowledge file %s", path)
        return fallback
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Failed to load %s: %s", path, exc)
        return fallback
    if not isinstance(data, type(fallback)):
        logger.warning(
            "Unexpected top-level type in %s: %s", path, type(data).__name__,
        )
        return fallback
    return data


def _parse_day_key(raw: str) -> int | None:
    try:
        day = int(raw)
    except (TypeError, ValueError):
        return None
    if not 1 <= day <= PROGRAM_DAYS:
        return None
    return day


def _parse_day_type(raw: Any) -> DayType | None:
    try:
        return DayType(raw)
    except ValueError:
        return None


def _build_day_types(raw: dict) -> dict[int, DayType]:
    result: dict[int, DayType] = {}
    for key, value in raw.items():
        day = _parse_day_key(key)
        day_type = _parse_day_type(value)
        if day is None or day_type is None:
            logger.warning("Skipping day_type_map entry %r: %r", key, value)
            continue
        result[day] = day_type
    return result


def _build_menu_details(raw: dict) -> dict[DayType, dict[str, str]]:
    result: dict[DayType, dict[str, str]] = {}
    for key, slots in raw.items():
        day_type = _parse_day_type(key)
        if day_type is None or not isinstance(slots, dict):
            logger.warning("Skipping menu details for %r", key)
            continue
        result[day_type] = {
            str(slot): str(text) for slot, text in slots.items() if text
        }
    return result


def _build_push_templates(raw: dict) -> dict[DayType, str]:
    result: dict[DayType, str] = {}
    for key, text in raw.items():
        day_type = _parse_day_type(key)
        if day_type is None:
            logger.warning("Skipping push template for %r", key)
            continue
        result[day_type] = str(text)
    return result


def _build_companions(raw: dict) -> dict[int, str]:
    result: dict[int, str] = {}
    for key, text in raw.items():
        day = _parse_day_key(key)
        if day is None or not text:
            continue
        result[day] = str(text)
    return result


def _build_faq_items(raw: dict) -> tuple[FAQItem, ...]:
    items = raw.get("items", [])
    if not isinstance(items, list):
        logger.warning("FAQ 'items' is not a list — ignoring FAQ table")
        return ()

    parsed: list[FAQItem] = []
    for entry in items:
        try:
            parsed.append(FAQItem.model_validate(entry))
        except ValidationError as exc:
            logger.warning("Skipping malformed FAQ entry: %s", exc)
    return tuple(parsed)


def load_knowledge(directory: str | Path) -> KnowledgeTables:
    """Load every knowledge table from *directory*, degrading per file."""
    base = Path(directory)

    tables = KnowledgeTables(
        day_types=_build_day_types(_safe_load_json(base / "day_type_map.json", {})),
        menu_details=_build_menu_details(
            _safe_load_json(base / "menu_details_by_day_type.json", {})
        ),
        push_templates=_build_push_templates(_safe_load_json(base / "push_templates.json", {})),
        companion_by_day=_build_companions(_safe_load_json(base / "companion_by_day.json", {})),
        faq_items=_build_faq_items(_safe_load_json(base / "faq.json", {"items": []})),
    )

    logger.info(
        "Knowledge loaded from %s: FAQ=%d dayTypeMap=%d menuTypes=%d",
        base, len(tables.faq_items), len(tables.day_types), len(tables.menu_details),
    )
    return tables
