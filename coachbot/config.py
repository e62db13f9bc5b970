"""
Program Coach — Centralized configuration.

Loads all settings from .env and validates required keys.
Everything outside the LINE channel credentials is optional: a missing
knowledge base or durable store degrades the bot instead of stopping it.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from coachbot/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # LINE Messaging API
    LINE_CHANNEL_SECRET: str
    LINE_CHANNEL_ACCESS_TOKEN: str

    # LLM — provider-agnostic (openai, anthropic, gemini, cohere)
    LLM_PROVIDER: str = "openai"
    LLM_MODEL: str = ""          # empty → smart default per provider
    LLM_API_KEY: str = ""

    # Knowledge base — OpenAI vector store searched before answering
    OPENAI_API_KEY: str = ""
    KNOWLEDGE_BASE_ID: str = ""

    # Durable store (Apps Script web app backed by a sheet)
    STORE_URL: str = ""
    STORE_KEY: str = ""

    # Program
    TIMEZONE: str = "Asia/Taipei"
    KNOWLEDGE_DIR: str = "knowledge"

    # AI gateway
    AI_COOLDOWN_SECONDS: float = 20.0
    AI_TIMEOUT_SECONDS: float = 20.0

    # HTTP server
    PORT: int = 3000

    @field_validator("AI_COOLDOWN_SECONDS", "AI_TIMEOUT_SECONDS", mode="before")
    @classmethod
    def parse_seconds(cls, v: str | float) -> float:
        if isinstance(v, str) and not v.strip():
            return 20.0
        return float(v)

    @field_validator("PORT", mode="before")
    @classmethod
    def parse_port(cls, v: str | int) -> int:
        return int(v)

    @property
    def knowledge_search_key(self) -> str:
        """API key for vector-store search.

        The vector store lives on OpenAI, so LLM_API_KEY only stands in for
        it when the LLM provider is OpenAI too. Empty means no search.
        """
        if self.OPENAI_API_KEY:
            return self.OPENAI_API_KEY
        if self.LLM_PROVIDER.lower() == "openai":
            return self.LLM_API_KEY
        return ""


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    secret = os.getenv("LINE_CHANNEL_SECRET", "")
    token = os.getenv("LINE_CHANNEL_ACCESS_TOKEN", "")

    if not secret or secret.startswith("your-"):
        print("ERROR: LINE_CHANNEL_SECRET is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    if not token or token.startswith("your-"):
        print("ERROR: LINE_CHANNEL_ACCESS_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        LINE_CHANNEL_SECRET=secret,
        LINE_CHANNEL_ACCESS_TOKEN=token,
        LLM_PROVIDER=os.getenv("LLM_PROVIDER", "openai"),
        LLM_MODEL=os.getenv("LLM_MODEL", ""),
        LLM_API_KEY=os.getenv("LLM_API_KEY", ""),
        OPENAI_API_KEY=os.getenv("OPENAI_API_KEY", ""),
        KNOWLEDGE_BASE_ID=os.getenv("KNOWLEDGE_BASE_ID", ""),
        STORE_URL=os.getenv("STORE_URL", ""),
        STORE_KEY=os.getenv("STORE_KEY", ""),
        TIMEZONE=os.getenv("TIMEZONE", "Asia/Taipei"),
        KNOWLEDGE_DIR=os.getenv("KNOWLEDGE_DIR", "knowledge"),
        AI_COOLDOWN_SECONDS=os.getenv("AI_COOLDOWN_SECONDS", "20"),
        AI_TIMEOUT_SECONDS=os.getenv("AI_TIMEOUT_SECONDS", "20"),
        PORT=os.getenv("PORT", "3000"),
    )


# Singleton — imported by wiring code as:
#   from coachbot.config import settings
settings = _load_settings()
