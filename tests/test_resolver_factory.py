"""Tests for coachbot.adapters.resolver_factory — wiring from settings."""

import logging
from unittest.mock import patch

import pytest

from coachbot.adapters.knowledge_answerer import KnowledgeBaseAnswerer
from coachbot.adapters.resolver_factory import (
    create_ai_gateway,
    create_resolver,
    create_state_store,
)
from coachbot.config import Settings
from coachbot.core.ai_gateway import NOT_CONFIGURED_MESSAGE
from coachbot.data.models import ConversationIdentity, ConversationKind
from coachbot.data.state_store import CachedStateStore, InMemoryStateStore


class TestCreateStateStore:
    def test_memory_only_without_store_config(self):
        with patch("coachbot.adapters.resolver_factory.settings") as settings:
            settings.STORE_URL = ""
            settings.STORE_KEY = ""
            store = create_state_store()
        assert type(store) is InMemoryStateStore

    def test_cached_with_store_config(self):
        with patch("coachbot.adapters.resolver_factory.settings") as settings:
            settings.STORE_URL = "https://script.example/exec"
            settings.STORE_KEY = "secret"
            assert isinstance(create_state_store(), CachedStateStore)


class TestCreateAIGateway:
    def test_unconfigured_without_knowledge_base(self):
        with patch("coachbot.adapters.resolver_factory.settings") as settings:
            settings.KNOWLEDGE_BASE_ID = ""
            settings.LLM_API_KEY = "k"
            settings.AI_COOLDOWN_SECONDS = 20.0
            settings.AI_TIMEOUT_SECONDS = 20.0
            assert not create_ai_gateway().configured

    def test_configured_with_knowledge_base(self):
        with patch("coachbot.adapters.resolver_factory.settings") as settings, patch(
            "coachbot.adapters.resolver_factory.KnowledgeBaseAnswerer",
            wraps=KnowledgeBaseAnswerer,
        ) as answerer_cls:
            settings.KNOWLEDGE_BASE_ID = "vs_123"
            settings.LLM_API_KEY = "k"
            settings.knowledge_search_key = "search-key"
            settings.AI_COOLDOWN_SECONDS = 20.0
            settings.AI_TIMEOUT_SECONDS = 20.0
            gateway = create_ai_gateway()

        assert gateway.configured
        answerer_cls.assert_called_once_with(vector_store_id="vs_123", search_api_key="search-key")

    def test_unconfigured_logs_warning(self, caplog):
        with patch("coachbot.adapters.resolver_factory.settings") as settings:
            settings.KNOWLEDGE_BASE_ID = ""
            settings.LLM_API_KEY = ""
            settings.knowledge_search_key = ""
            settings.AI_COOLDOWN_SECONDS = 20.0
            settings.AI_TIMEOUT_SECONDS = 20.0
            with caplog.at_level(logging.WARNING, logger="coachbot.adapters.resolver_factory"):
                create_ai_gateway()

        assert "AI answers disabled" in caplog.text

    @pytest.mark.parametrize("provider", ["anthropic", "gemini", "cohere"])
    def test_non_openai_provider_without_openai_key(self, provider):
        settings = Settings(
            LINE_CHANNEL_SECRET="s",
            LINE_CHANNEL_ACCESS_TOKEN="t",
            LLM_PROVIDER=provider,
            LLM_API_KEY="provider-key",
            OPENAI_API_KEY="",
            KNOWLEDGE_BASE_ID="vs_123",
        )
        with patch("coachbot.adapters.resolver_factory.settings", settings):
            gateway = create_ai_gateway()

        assert settings.knowledge_search_key == ""
        assert not gateway.configured

    @pytest.mark.asyncio
    async def test_non_openai_provider_reply_is_not_configured(self):
        settings = Settings(
            LINE_CHANNEL_SECRET="s",
            LINE_CHANNEL_ACCESS_TOKEN="t",
            LLM_PROVIDER="anthropic",
            LLM_API_KEY="sk-ant-xxx",
            KNOWLEDGE_BASE_ID="vs_123",
        )
        with patch("coachbot.adapters.resolver_factory.settings", settings):
            gateway = create_ai_gateway()

        first = await gateway.ask("U1", "請問可以喝咖啡嗎")
        second = await gateway.ask("U1", "請問可以喝咖啡嗎")
        assert first == second == NOT_CONFIGURED_MESSAGE

    def test_openai_provider_reuses_llm_key(self):
        settings = Settings(
            LINE_CHANNEL_SECRET="s",
            LINE_CHANNEL_ACCESS_TOKEN="t",
            LLM_PROVIDER="OpenAI",
            LLM_API_KEY="sk-openai",
            KNOWLEDGE_BASE_ID="vs_123",
        )
        with patch("coachbot.adapters.resolver_factory.settings", settings):
            assert create_ai_gateway().configured
        assert settings.knowledge_search_key == "sk-openai"

    def test_separate_openai_key_with_other_provider(self):
        settings = Settings(
            LINE_CHANNEL_SECRET="s",
            LINE_CHANNEL_ACCESS_TOKEN="t",
            LLM_PROVIDER="gemini",
            LLM_API_KEY="gemini-key",
            OPENAI_API_KEY="sk-openai",
            KNOWLEDGE_BASE_ID="vs_123",
        )
        with patch("coachbot.adapters.resolver_factory.settings", settings):
            assert create_ai_gateway().configured
        assert settings.knowledge_search_key == "sk-openai"


class TestCreateResolver:
    @pytest.mark.asyncio
    async def test_degraded_boot_still_answers(self):
        resolver = create_resolver(store=InMemoryStateStore())
        identity = ConversationIdentity(kind=ConversationKind.DIRECT, id="U1")

        assert "第 1 天" in await resolver.respond(identity, "開始")
        assert await resolver.respond(identity, "請問腸道健康跟什麼有關係？") == NOT_CONFIGURED_MESSAGE
