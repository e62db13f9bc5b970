"""Tests for coachbot.data.knowledge — loading the static tables."""

import json
from pathlib import Path

from coachbot.data.knowledge import KnowledgeTables, load_knowledge
from coachbot.data.models import DayType

_REPO_KNOWLEDGE = Path(__file__).resolve().parent.parent / "knowledge"


def _write(directory, name, payload):
    path = directory / name
    if isinstance(payload, str):
        path.write_text(payload, encoding="utf-8")
    else:
        path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


class TestKnowledgeTables:
    def test_unmapped_day_defaults_to_slim(self):
        tables = KnowledgeTables(day_types={1: DayType.PREP})
        assert tables.day_type(1) is DayType.PREP
        assert tables.day_type(20) is DayType.SLIM

    def test_missing_lookups(self):
        tables = KnowledgeTables()
        assert tables.push_template(DayType.SLIM) == ""
        assert tables.companion(5) is None
        assert tables.slot_detail(DayType.SLIM, "08:00") is None

    def test_labels(self):
        assert DayType.PREP.label == "準備日"
        assert DayType.METABOLIC.label == "新陳代謝日"


class TestLoadKnowledge:
    def test_loads_all_files(self, tmp_path):
        _write(tmp_path, "day_type_map.json", {"1": "PREP", "3": "SLIM_FIRST"})
        _write(tmp_path, "menu_details_by_day_type.json", {"PREP": {"08:00": "早餐"}})
        _write(tmp_path, "push_templates.json", {"PREP": "準備日提醒"})
        _write(tmp_path, "companion_by_day.json", {"1": "加油"})
        _write(tmp_path, "faq.json", {"items": [{"id": "a", "keywords": ["外食"], "answer": "ok"}]})

        tables = load_knowledge(tmp_path)

        assert tables.day_type(3) is DayType.SLIM_FIRST
        assert tables.slot_detail(DayType.PREP, "08:00") == "早餐"
        assert tables.push_template(DayType.PREP) == "準備日提醒"
        assert tables.companion(1) == "加油"
        assert tables.faq_items[0].id == "a"

    def test_missing_directory_degrades_to_empty(self, tmp_path):
        tables = load_knowledge(tmp_path / "nope")
        assert tables.day_types == {}
        assert tables.menu_details == {}
        assert tables.faq_items == ()

    def test_malformed_file_only_affects_itself(self, tmp_path):
        _write(tmp_path, "day_type_map.json", "{not json")
        _write(tmp_path, "push_templates.json", {"SLIM": "纖體日提醒"})

        tables = load_knowledge(tmp_path)

        assert tables.day_types == {}
        assert tables.push_template(DayType.SLIM) == "纖體日提醒"

    def test_wrong_top_level_type_is_ignored(self, tmp_path):
        _write(tmp_path, "companion_by_day.json", ["not", "a", "dict"])
        assert load_knowledge(tmp_path).companion_by_day == {}

    def test_bad_entries_are_skipped(self, tmp_path):
        _write(tmp_path, "day_type_map.json", {"1": "PREP", "2": "UNKNOWN", "x": "SLIM", "99": "PREP"})
        _write(tmp_path, "faq.json", {"items": [{"keywords": "not-a-list", "answer": "x"}, {"keywords": ["a"], "answer": "b"}]})

        tables = load_knowledge(tmp_path)

        assert tables.day_types == {1: DayType.PREP}
        assert len(tables.faq_items) == 1

    def test_shipped_knowledge_loads(self):
        tables = load_knowledge(_REPO_KNOWLEDGE)
        assert tables.day_type(1) is DayType.PREP
        assert tables.faq_items
        assert DayType.SLIM in tables.menu_details
