"""Pipeline stage handlers.

Each stage consumes one message type and returns the message(s) it emits;
the bus takes care of the handoff. Stages hold no per-run state.
"""

from __future__ import annotations

from notebridge.ai.chain import ProviderChain, ProviderChainExhaustedError
from notebridge.logging import get_logger
from notebridge.pipeline.classifier import classify
from notebridge.pipeline.extraction import ContentExtractionRouter
from notebridge.pipeline.models import (
    ContentExtracted,
    ContentSummarized,
    LinkDetected,
    NoteReady,
    PipelineMessage,
    RawMessage,
    TagsGenerated,
)
from notebridge.pipeline.notes import derive_source_url, derive_title
from notebridge.pipeline.tagging import heuristic_tags, merge_tags

log = get_logger("notebridge.pipeline.stages")


class LinkDetectionStage:
    """RawMessage -> one LinkDetected per URL in the text."""

    async def handle(self, message: RawMessage) -> list[LinkDetected]:
        links = [
            LinkDetected(url=url, kind=kind, meta=message.meta)
            for url, kind in classify(message.text)
        ]
        if not links:
            log.info("no_links_found", text_length=len(message.text or ""))
            return []
        for link in links:
            log.info("link_detected", url=link.url, kind=link.kind.value)
        return links


class ContentExtractionStage:
    """LinkDetected -> ContentExtracted, plus child LinkDetected for embedded URLs."""

    def __init__(self, router: ContentExtractionRouter) -> None:
        self._router = router

    async def handle(self, message: LinkDetected) -> list[PipelineMessage]:
        result = await self._router.route(message)
        if result.content is None:
            return []
        emitted: list[PipelineMessage] = [result.content]
        for child in result.children:
            log.info(
                "embedded_link_detected",
                url=child.url,
                kind=child.kind.value,
                parent_url=message.url,
                depth=child.depth,
            )
        emitted.extend(result.children)
        return emitted


class SummarizationStage:
    """ContentExtracted -> ContentSummarized.

    Provider exhaustion is fatal for the run: the error propagates to the
    bus and nothing is emitted.
    """

    def __init__(self, chain: ProviderChain) -> None:
        self._chain = chain

    async def handle(self, message: ContentExtracted) -> ContentSummarized:
        log.info("summarization_started", source_url=message.source_url)
        summary = await self._chain.summarize(message.body, message.source_url)
        log.info(
            "summarization_completed",
            source_url=message.source_url,
            summary_length=len(summary),
        )
        return ContentSummarized(
            summary=summary,
            original_body=message.body,
            source_url=message.source_url,
            title=message.title,
            meta=message.meta,
        )


class TagGenerationStage:
    """ContentSummarized -> TagsGenerated.

    AI tags are merged with the local heuristic; if every provider fails the
    heuristic alone is used, so the baseline tags are always present.
    """

    def __init__(self, chain: ProviderChain) -> None:
        self._chain = chain

    async def handle(self, message: ContentSummarized) -> TagsGenerated:
        basic = heuristic_tags(message.summary)
        try:
            ai_tags = await self._chain.generate_tags(message.summary)
        except ProviderChainExhaustedError as e:
            log.warning("tag_generation_fallback", error=str(e), tags=basic)
            tags = basic
        else:
            tags = merge_tags(ai_tags, basic)
            log.info(
                "tags_generated",
                total=len(tags),
                ai=len(ai_tags),
                added=len(tags) - len(ai_tags),
            )
        return TagsGenerated(
            tags=tuple(tags),
            summary=message.summary,
            original_body=message.original_body,
            source_url=message.source_url,
            meta=message.meta,
        )


class NoteAssemblyStage:
    """TagsGenerated -> NoteReady."""

    async def handle(self, message: TagsGenerated) -> NoteReady:
        title = derive_title(message.summary)
        source_url = derive_source_url(message.summary, fallback=message.source_url)
        if not source_url:
            log.warning("note_source_url_missing")
        log.info("note_assembled", title=title, tags=len(message.tags), source_url=source_url)
        return NoteReady(
            title=title,
            content=message.summary,
            tags=message.tags,
            source_url=source_url,
            original_content=message.original_body,
            meta=message.meta,
        )
