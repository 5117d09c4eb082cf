"""AI providers for summarization and tag generation.

Each provider wraps one chat-completion backend behind the same two
capabilities. Ollama runs locally and is tried first by default; the hosted
backends (OpenRouter, Anthropic, Gemini) serve as fallbacks.
"""

from __future__ import annotations

import asyncio
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import anthropic
import httpx
import openai
from google import genai  # type: ignore[attr-defined]

from notebridge.ai.prompts import SYSTEM_PROMPT, build_summary_prompt, build_tags_prompt
from notebridge.logging import get_logger

if TYPE_CHECKING:
    from notebridge.config import Settings

log = get_logger("notebridge.ai.providers")

DEFAULT_MAX_TOKENS = 1024

_TAG_SPLIT = re.compile(r"[,\n]")
_TAG_DECORATION = re.compile(r"^(?:[-*•]|\d+[.)])\s*")


class ProviderError(Exception):
    """Raised when a provider returns no usable answer."""


def parse_tags(reply: str) -> list[str]:
    """Split a comma/newline separated tag reply into clean tags.

    Casing is preserved; duplicates (case-insensitive) are dropped.
    """
    tags: list[str] = []
    seen: set[str] = set()
    for raw in _TAG_SPLIT.split(reply or ""):
        tag = _TAG_DECORATION.sub("", raw.strip()).strip().lstrip("#").strip().strip("\"'`")
        if not tag:
            continue
        key = tag.casefold()
        if key in seen:
            continue
        seen.add(key)
        tags.append(tag)
    return tags


class AIProvider(ABC):
    """Abstract base class for chat-completion providers."""

    name: str = "provider"

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the raw text reply."""
        raise NotImplementedError

    async def summarize(self, text: str, source_url: str) -> str:
        """Summarize ``text`` which was taken from ``source_url``."""
        reply = (await self.complete(build_summary_prompt(text, source_url))).strip()
        if not reply:
            raise ProviderError(f"{self.name} returned an empty summary")
        return reply

    async def generate_tags(self, text: str) -> list[str]:
        """Generate tags describing ``text``."""
        tags = parse_tags(await self.complete(build_tags_prompt(text)))
        if not tags:
            raise ProviderError(f"{self.name} returned no tags")
        return tags

    async def close(self) -> None:
        """Close the client (no-op by default)."""
        return


class OllamaProvider(AIProvider):
    """Local Ollama server via its chat API."""

    name = "ollama"

    def __init__(
        self,
        base_url: str,
        model: str,
        *,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._client = client or httpx.AsyncClient(timeout=timeout)
        log.info("ollama_provider_initialized", url=self._base_url, model=self._model)

    async def complete(self, prompt: str) -> str:
        response = await self._client.post(
            f"{self._base_url}/api/chat",
            json={
                "model": self._model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "stream": False,
            },
        )
        response.raise_for_status()
        data = response.json()
        try:
            return str(data["message"]["content"])
        except (KeyError, TypeError) as e:
            raise ProviderError(f"Malformed Ollama response: {data!r:.200}") from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


class OpenRouterProvider(AIProvider):
    """OpenRouter, or any other OpenAI-compatible endpoint."""

    name = "openrouter"

    def __init__(self, api_key: str, model: str, *, base_url: str, timeout: float = 60.0) -> None:
        if not api_key:
            raise ValueError("OpenRouter API key is required")
        self._client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self._model = model
        log.info("openrouter_provider_initialized", base_url=base_url, model=self._model)

    async def complete(self, prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
        if not response.choices:
            raise ProviderError("OpenRouter response had no choices")
        return response.choices[0].message.content or ""

    async def close(self) -> None:
        """Close the OpenAI client."""
        await self._client.close()


class AnthropicProvider(AIProvider):
    """Claude via the Anthropic API."""

    name = "anthropic"

    def __init__(self, api_key: str, model: str, *, timeout: float = 60.0) -> None:
        if not api_key:
            raise ValueError("Anthropic API key is required")
        self._client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout)
        self._model = model
        log.info("anthropic_provider_initialized", model=self._model)

    async def complete(self, prompt: str) -> str:
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=DEFAULT_MAX_TOKENS,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        log.debug(
            "claude_response_generated",
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        if not response.content:
            raise ProviderError("Claude response had no content")
        return response.content[0].text

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()


class GeminiProvider(AIProvider):
    """Gemini via the google-genai client."""

    name = "gemini"

    def __init__(self, api_key: str, model: str) -> None:
        if not api_key:
            raise ValueError("Gemini API key is required")
        self._client = genai.Client(api_key=api_key)
        self._model = model
        log.info("gemini_provider_initialized", model=self._model)

    async def complete(self, prompt: str) -> str:
        # Wrap synchronous Gemini call in thread to avoid blocking event loop
        response = await asyncio.to_thread(
            self._client.models.generate_content,
            model=self._model,
            contents=f"{SYSTEM_PROMPT}\n\n{prompt}",
            config={"temperature": 0.3, "max_output_tokens": DEFAULT_MAX_TOKENS},
        )
        return response.text or ""


def _build_provider(name: str, settings: Settings) -> AIProvider | None:
    timeout = settings.provider_timeout
    if name == "ollama":
        return OllamaProvider(settings.ollama_url, settings.ollama_model, timeout=timeout)
    if name == "openrouter":
        if not settings.openrouter_api_key:
            return None
        return OpenRouterProvider(
            settings.openrouter_api_key.get_secret_value(),
            settings.openrouter_model,
            base_url=settings.openrouter_base_url,
            timeout=timeout,
        )
    if name == "anthropic":
        if not settings.anthropic_api_key:
            return None
        return AnthropicProvider(
            settings.anthropic_api_key.get_secret_value(), settings.anthropic_model, timeout=timeout
        )
    if name == "gemini":
        if not settings.gemini_api_key:
            return None
        return GeminiProvider(settings.gemini_api_key.get_secret_value(), settings.gemini_model)
    raise ValueError(f"Unknown AI provider: {name}")


def build_providers(settings: Settings) -> list[AIProvider]:
    """Create the configured providers in fallback order.

    Providers missing their credentials are skipped with a warning.
    """
    providers: list[AIProvider] = []
    for name in settings.ai_providers:
        provider = _build_provider(name, settings)
        if provider is None:
            log.warning("ai_provider_not_configured", provider=name)
            continue
        providers.append(provider)
    log.info("ai_providers_configured", providers=[p.name for p in providers])
    return providers
