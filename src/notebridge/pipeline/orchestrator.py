"""Pipeline orchestrator.

Wires the stages onto a ``PipelineBus`` and exposes the two outer edges of
the system: ``submit`` (ingress from the chat transport) and the
``NoteReady`` subscriber (egress to note persistence).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from notebridge.ai.chain import ProviderChain
from notebridge.logging import get_logger
from notebridge.pipeline.bus import PipelineBus
from notebridge.pipeline.extraction import (
    DEFAULT_MAX_EMBEDDED_LINKS,
    DEFAULT_MAX_LINK_DEPTH,
    ContentExtractionRouter,
)
from notebridge.pipeline.models import (
    ContentExtracted,
    ContentSummarized,
    FailedRun,
    LinkDetected,
    MessageMeta,
    NoteReady,
    RawMessage,
    TagsGenerated,
)
from notebridge.pipeline.stages import (
    ContentExtractionStage,
    LinkDetectionStage,
    NoteAssemblyStage,
    SummarizationStage,
    TagGenerationStage,
)

if TYPE_CHECKING:
    from notebridge.config import Settings
    from notebridge.sources.models import ContentFetchers

log = get_logger("notebridge.pipeline.orchestrator")

NoteSubscriber = Callable[[NoteReady], Awaitable[object]]


class NotePipeline:
    """Message-driven link -> note pipeline.

    The provider chain and fetchers are built once at startup and passed in;
    the pipeline never looks them up globally.
    """

    def __init__(
        self,
        *,
        chain: ProviderChain,
        fetchers: ContentFetchers,
        on_note_ready: NoteSubscriber | None = None,
        workers: int = 1,
        max_link_depth: int = DEFAULT_MAX_LINK_DEPTH,
        max_embedded_links: int = DEFAULT_MAX_EMBEDDED_LINKS,
    ) -> None:
        self._chain = chain
        self._on_note_ready = on_note_ready
        self._bus = PipelineBus(workers=workers)

        router = ContentExtractionRouter(
            fetchers,
            max_link_depth=max_link_depth,
            max_embedded_links=max_embedded_links,
        )
        self._bus.register(RawMessage, LinkDetectionStage().handle)
        self._bus.register(LinkDetected, ContentExtractionStage(router).handle)
        self._bus.register(ContentExtracted, SummarizationStage(chain).handle)
        self._bus.register(ContentSummarized, TagGenerationStage(chain).handle)
        self._bus.register(TagsGenerated, NoteAssemblyStage().handle)
        self._bus.register(NoteReady, self._deliver_note)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        chain: ProviderChain,
        fetchers: ContentFetchers,
        on_note_ready: NoteSubscriber | None = None,
    ) -> NotePipeline:
        return cls(
            chain=chain,
            fetchers=fetchers,
            on_note_ready=on_note_ready,
            workers=settings.pipeline_workers,
            max_link_depth=settings.max_link_depth,
            max_embedded_links=settings.max_embedded_links,
        )

    @property
    def bus(self) -> PipelineBus:
        return self._bus

    @property
    def failed_runs(self) -> list[FailedRun]:
        return self._bus.failed_runs

    def subscribe(self, subscriber: NoteSubscriber) -> None:
        """Set the single receiver of finished notes."""
        if self._on_note_ready is not None:
            raise ValueError("A NoteReady subscriber is already registered")
        self._on_note_ready = subscriber

    async def start(self) -> None:
        await self._bus.start()

    async def stop(self) -> None:
        await self._bus.stop()

    async def drain(self) -> None:
        """Wait until every run submitted so far has finished or failed."""
        await self._bus.join()

    async def submit(self, text: str, chat_id: int, message_id: str) -> str:
        """Start a run for one chat message and return its correlation id."""
        meta = MessageMeta.new(chat_id=chat_id, message_id=str(message_id))
        log.info("message_submitted", text_length=len(text or ""), **meta.log_fields())
        await self._bus.send(RawMessage(text=text or "", meta=meta))
        return meta.correlation_id

    def cancel(self, correlation_id: str) -> None:
        """Cancel a run; it stops at the next stage boundary."""
        self._bus.cancel(correlation_id)

    async def _deliver_note(self, note: NoteReady) -> None:
        if self._on_note_ready is None:
            log.warning("note_ready_unhandled", title=note.title)
            return
        await self._on_note_ready(note)
        log.info("note_delivered", title=note.title, source_url=note.source_url)
