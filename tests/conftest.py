"""Shared test fixtures and configuration.

Sets up fake environment variables so coachbot.config doesn't sys.exit(),
and provides a fixed program clock, small knowledge tables and a resolver
wired with in-memory collaborators.
"""

import os

# Patch env vars BEFORE any coachbot imports
os.environ.setdefault("LINE_CHANNEL_SECRET", "fake-channel-secret")
os.environ.setdefault("LINE_CHANNEL_ACCESS_TOKEN", "fake-access-token")
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_API_KEY", "")
os.environ.setdefault("KNOWLEDGE_BASE_ID", "")
os.environ.setdefault("STORE_URL", "")
os.environ.setdefault("STORE_KEY", "")

from datetime import datetime
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest


@pytest.fixture
def clock():
    """ProgramClock frozen at 2025-03-20 10:00 Asia/Taipei."""
    from coachbot.core.program_clock import ProgramClock

    fixed = datetime(2025, 3, 20, 10, 0, tzinfo=ZoneInfo("Asia/Taipei"))
    return ProgramClock("Asia/Taipei", now=lambda: fixed)


@pytest.fixture
def knowledge():
    """Small knowledge tables covering every day type used in tests."""
    from coachbot.data.knowledge import KnowledgeTables
    from coachbot.data.models import DayType, FAQItem

    return KnowledgeTables(
        day_types={1: DayType.PREP, 2: DayType.PREP, 3: DayType.SLIM_FIRST, 12: DayType.PROTEIN_SINGLE},
        menu_details={
            DayType.PREP: {"08:00": "早餐：地瓜＋雞蛋", "18:00": "晚餐：清淡為主"},
            DayType.SLIM: {"12:00": "午餐：瘦肉＋蔬菜"},
        },
        push_templates={DayType.PREP: "準備日提醒", DayType.PROTEIN_SINGLE: "蛋白日提醒"},
        companion_by_day={1: "第一天陪伴", 12: "第十二天陪伴"},
        faq_items=(
            FAQItem(id="eat-out", keywords=["外食", "便當"], answer="外食建議選自助餐"),
            FAQItem(id="coffee", keywords=["咖啡"], answer="計畫期間先暫停咖啡"),
        ),
    )


@pytest.fixture
def store():
    from coachbot.data.state_store import InMemoryStateStore
    return InMemoryStateStore()


@pytest.fixture
def backend():
    """AnswerBackend mock returning a canned answer."""
    mock = AsyncMock()
    mock.answer = AsyncMock(return_value="腸道健康與飲食纖維有關 [1]")
    return mock


@pytest.fixture
def gateway(backend):
    from coachbot.core.ai_gateway import AIGateway
    return AIGateway(backend, cooldown_seconds=20.0, timeout_seconds=5.0)


@pytest.fixture
def resolver(knowledge, store, clock, gateway):
    from coachbot.core.resolver import ResponseResolver
    return ResponseResolver(knowledge=knowledge, store=store, clock=clock, ai_gateway=gateway)


@pytest.fixture
def direct():
    from coachbot.data.models import ConversationIdentity, ConversationKind
    return ConversationIdentity(kind=ConversationKind.DIRECT, id="U1234")


@pytest.fixture
def group():
    from coachbot.data.models import ConversationIdentity, ConversationKind
    return ConversationIdentity(kind=ConversationKind.GROUP, id="C5678")
