"""Ordered provider chain with fallback.

Providers are tried strictly in order with one attempt each. A failing
provider is logged and skipped; only when every provider has failed does the
chain raise ``ProviderChainExhaustedError`` carrying the last failure.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

from notebridge.ai.providers import AIProvider, build_providers
from notebridge.logging import get_logger
from notebridge.utils import timed_operation

if TYPE_CHECKING:
    from notebridge.config import Settings

log = get_logger("notebridge.ai.chain")


class Capability(Enum):
    """AI capabilities the pipeline invokes through the chain."""

    SUMMARIZE = "summarize"
    GENERATE_TAGS = "generate_tags"


class ProviderChainExhaustedError(Exception):
    """Raised when every provider in the chain failed for one invocation."""

    def __init__(
        self,
        capability: Capability,
        attempted: Sequence[str],
        last_error: BaseException | None,
    ) -> None:
        self.capability = capability
        self.attempted = tuple(attempted)
        self.last_error = last_error
        if attempted:
            detail = f"all providers failed ({', '.join(attempted)}): {last_error}"
        else:
            detail = "no providers configured"
        super().__init__(f"AI {capability.value} failed: {detail}")


class ProviderChain:
    """Immutable, ordered list of providers shared by all runs."""

    def __init__(self, providers: Sequence[AIProvider], *, timeout: float | None = None) -> None:
        self._providers: tuple[AIProvider, ...] = tuple(providers)
        self._timeout = timeout

    @property
    def providers(self) -> tuple[AIProvider, ...]:
        return self._providers

    async def invoke(self, capability: Capability, text: str, *, source_url: str = "") -> Any:
        """Run ``capability`` on the first provider that succeeds.

        Raises:
            ProviderChainExhaustedError: every provider failed (or none exist).
        """
        attempted: list[str] = []
        last_error: BaseException | None = None

        for provider in self._providers:
            attempted.append(provider.name)
            try:
                async with timed_operation(
                    "ai_provider_call",
                    log=log,
                    provider=provider.name,
                    capability=capability.value,
                ):
                    result = await self._call(provider, capability, text, source_url)
            except Exception as e:
                log.warning(
                    "ai_provider_failed",
                    provider=provider.name,
                    capability=capability.value,
                    error=str(e) or type(e).__name__,
                    error_type=type(e).__name__,
                )
                last_error = e
                continue

            log.info(
                "ai_provider_succeeded",
                provider=provider.name,
                capability=capability.value,
                attempts=len(attempted),
            )
            return result

        log.error(
            "ai_providers_exhausted",
            capability=capability.value,
            attempted=attempted,
        )
        raise ProviderChainExhaustedError(capability, attempted, last_error) from last_error

    async def summarize(self, text: str, source_url: str) -> str:
        result: str = await self.invoke(Capability.SUMMARIZE, text, source_url=source_url)
        return result

    async def generate_tags(self, text: str) -> list[str]:
        result: list[str] = await self.invoke(Capability.GENERATE_TAGS, text)
        return result

    async def close(self) -> None:
        """Close every provider's client."""
        for provider in self._providers:
            await provider.close()

    async def _call(
        self,
        provider: AIProvider,
        capability: Capability,
        text: str,
        source_url: str,
    ) -> Any:
        if capability is Capability.SUMMARIZE:
            call = provider.summarize(text, source_url)
        else:
            call = provider.generate_tags(text)
        if self._timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout=self._timeout)


def build_provider_chain(settings: Settings) -> ProviderChain:
    """Build the shared provider chain from settings."""
    chain = ProviderChain(build_providers(settings), timeout=settings.provider_timeout)
    if not chain.providers:
        log.warning("no_ai_providers_configured")
    return chain
