"""
Program Coach — LLM Provider Abstraction.

Single public function `complete()` that routes to the configured provider.
Provider is selected at first use via the LLM_PROVIDER env var.
Supports: openai (default), anthropic, gemini, cohere.

Provider rate-limit errors are re-raised as RateLimitedError so callers
never need to know which SDK produced them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from coachbot.ports.answer_port import RateLimitedError

logger = logging.getLogger(__name__)

# Type alias for provider implementations
_ProviderFn = Callable[[str, str, "Prompt"], Awaitable[str]]

# Exception class names each SDK uses for HTTP 429 / quota exhaustion
_RATE_LIMIT_ERROR_NAMES = frozenset({
    "RateLimitError",          # openai, anthropic
    "ResourceExhausted",       # google.api_core (gemini)
    "TooManyRequestsError",    # cohere
})

# ---------------------------------------------------------------------------
# Provider implementations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Prompt:
    """One grounded-answer request, in provider-neutral form."""

    system: str
    user_message: str
    max_tokens: int = 800
    # Answers must stay close to the retrieved excerpts.
    temperature: float = 0.2

    def chat_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user_message},
        ]


async def _openai_answer(api_key: str, model: str, prompt: Prompt) -> str:
    from openai import AsyncOpenAI

    response = await AsyncOpenAI(api_key=api_key).chat.completions.create(
        model=model,
        messages=prompt.chat_messages(),
        max_tokens=prompt.max_tokens,
        temperature=prompt.temperature,
    )
    return response.choices[0].message.content or ""


async def _anthropic_answer(api_key: str, model: str, prompt: Prompt) -> str:
    import anthropic

    response = await anthropic.AsyncAnthropic(api_key=api_key).messages.create(
        model=model,
        system=prompt.system,
        messages=prompt.chat_messages()[1:],
        max_tokens=prompt.max_tokens,
        temperature=prompt.temperature,
    )
    return "".join(block.text for block in response.content if block.type == "text")


async def _gemini_answer(api_key: str, model: str, prompt: Prompt) -> str:
    import google.generativeai as genai

    genai.configure(api_key=api_key)
    response = await genai.GenerativeModel(
        model_name=model, system_instruction=prompt.system,
    ).generate_content_async(
        prompt.user_message,
        generation_config=genai.types.GenerationConfig(
            max_output_tokens=prompt.max_tokens,
            temperature=prompt.temperature,
        ),
    )
    return response.text


async def _cohere_answer(api_key: str, model: str, prompt: Prompt) -> str:
    import cohere

    response = await cohere.AsyncClientV2(api_key=api_key).chat(
        model=model,
        messages=prompt.chat_messages(),
        max_tokens=prompt.max_tokens,
        temperature=prompt.temperature,
    )
    return "".join(part.text for part in response.message.content if part.type == "text")


# ---------------------------------------------------------------------------
# Provider selection (runs once at first call)
# ---------------------------------------------------------------------------

_PROVIDERS: dict[str, tuple[_ProviderFn, str]] = {
    "openai":    (_openai_answer,    "gpt-4o-mini"),
    "anthropic": (_anthropic_answer, "claude-haiku-4-5-20251001"),
    "gemini":    (_gemini_answer,    "gemini-2.0-flash"),
    "cohere":    (_cohere_answer,    "command-a-03-2025"),
}


def _select_provider() -> tuple[_ProviderFn, str, str]:
    """Read settings and return (provider_fn, model, api_key)."""
    from coachbot.config import settings

    provider_name = settings.LLM_PROVIDER.lower()
    if provider_name not in _PROVIDERS:
        raise ValueError(
            f"Unknown LLM_PROVIDER={provider_name!r}. "
            f"Supported: {', '.join(_PROVIDERS)}"
        )

    fn, default_model = _PROVIDERS[provider_name]
    model = settings.LLM_MODEL or default_model
    api_key = settings.LLM_API_KEY

    logger.info("LLM provider: %s, model: %s", provider_name, model)
    return fn, model, api_key


def is_rate_limit_error(exc: BaseException) -> bool:
    """True if *exc* is a provider's rate-limit / quota error."""
    if isinstance(exc, RateLimitedError):
        return True
    if getattr(exc, "status_code", None) == 429:
        return True
    return type(exc).__name__ in _RATE_LIMIT_ERROR_NAMES


# Lazy singleton — populated on first call to complete()
_provider_fn: _ProviderFn | None = None
_model: str = ""
_api_key: str = ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def complete(
    system: str,
    user_message: str,
    max_tokens: int = 800,
    temperature: float = 0.2,
) -> str:
    """Send a prompt to the configured LLM provider and return the response text.

    Raises RateLimitedError when the provider is rate-limited; other API
    errors propagate unchanged — callers should handle exceptions.
    """
    global _provider_fn, _model, _api_key

    if _provider_fn is None:
        _provider_fn, _model, _api_key = _select_provider()

    prompt = Prompt(system, user_message, max_tokens, temperature)
    try:
        return await _provider_fn(_api_key, _model, prompt)
    except Exception as exc:
        if is_rate_limit_error(exc):
            logger.warning("LLM provider rate-limited: %s", exc)
            raise RateLimitedError(str(exc)) from exc
        raise
