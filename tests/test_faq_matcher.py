"""Tests for coachbot.core.faq_matcher — keyword-scored FAQ lookup."""

import pytest

from coachbot.core.faq_matcher import FAQMatcher, keyword_score
from coachbot.data.models import FAQItem


def _item(item_id, keywords, answer=None):
    return FAQItem(id=item_id, keywords=keywords, answer=answer or f"answer-{item_id}")


class TestKeywordScore:
    def test_longer_keywords_score_higher(self):
        assert keyword_score("ab") == 1
        assert keyword_score("abc") == 2
        assert keyword_score("abcdef") == 3

    def test_capped_at_three(self):
        assert keyword_score("a" * 20) == 3


class TestMatch:
    def test_single_keyword_hit(self):
        matcher = FAQMatcher([_item("eat-out", ["外食"])])
        assert matcher.match("外食怎麼吃？") == "answer-eat-out"

    def test_specific_keyword_beats_short_one(self):
        matcher = FAQMatcher([
            _item("short", ["喝水"]),                # 1 point
            _item("specific", ["每天喝水的量"]),     # 3 points
        ])
        assert matcher.match("每天喝水的量要多少") == "answer-specific"

    def test_zero_match_item_never_wins(self):
        matcher = FAQMatcher([
            _item("miss", ["運動", "跑步"]),
            _item("hit", ["便當"]),
        ])
        assert matcher.probe("便當可以吃嗎").item_id == "hit"

    def test_tie_keeps_first_item(self):
        matcher = FAQMatcher([
            _item("first", ["咖啡"]),
            _item("second", ["咖啡"]),
        ])
        assert matcher.match("咖啡") == "answer-first"

    def test_synonyms_fold_input_and_keywords(self):
        matcher = FAQMatcher([_item("drinks", ["手搖飲"])])
        # keyword folds to 飲料; input 飲料 matches it
        assert matcher.match("可以喝飲料嗎") == "answer-drinks"

    def test_keyword_normalized_before_matching(self):
        matcher = FAQMatcher([_item("case", ["FAQ？"])])
        assert matcher.match("faq please") == "answer-case"

    @pytest.mark.parametrize("text", ["", "   ", "？！。,.", None])
    def test_empty_input_returns_none(self, text):
        matcher = FAQMatcher([_item("any", ["外食"])])
        assert matcher.match(text) is None

    def test_no_match_returns_none(self):
        matcher = FAQMatcher([_item("eat-out", ["外食"])])
        assert matcher.match("今天天氣很好") is None

    def test_items_without_keywords_or_answer_are_skipped(self):
        matcher = FAQMatcher([
            FAQItem(id="no-kw", keywords=[], answer="x"),
            FAQItem(id="no-answer", keywords=["外食"], answer=""),
        ])
        assert len(matcher) == 0
        assert matcher.match("外食") is None

    def test_empty_keywords_are_ignored(self):
        matcher = FAQMatcher([_item("blank", ["", "？", "外食"])])
        assert matcher.probe("外食").score == 1


class TestProbe:
    def test_reports_score_and_id(self):
        matcher = FAQMatcher([_item("eat-out", ["外食", "自助餐"])])
        best = matcher.probe("外食吃自助餐")
        assert best.score == 1 + 2
        assert best.item_id == "eat-out"
        assert best.answer == "answer-eat-out"

    def test_no_match_has_zero_score(self):
        best = FAQMatcher([_item("x", ["外食"])]).probe("hello")
        assert best.score == 0
        assert best.item_id is None
        assert best.answer is None
