"""Content extraction router.

Dispatches a detected link to the fetcher for its kind, flattens the fetch
result into a single text body and discovers links embedded in that result.
Embedded links become new ``LinkDetected`` messages of the same run, bounded
by depth, ancestry and a per-item cap so cyclic or adversarial content cannot
fan out forever.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from notebridge.logging import get_logger
from notebridge.pipeline.classifier import classify_url
from notebridge.pipeline.models import ContentExtracted, LinkDetected, LinkKind
from notebridge.sources.models import (
    Article,
    ContentFetchers,
    Repository,
    SocialPost,
    VideoMetadata,
)
from notebridge.utils import find_urls

log = get_logger("notebridge.pipeline.extraction")

DEFAULT_MAX_LINK_DEPTH = 1
DEFAULT_MAX_EMBEDDED_LINKS = 10


@dataclass(frozen=True)
class ExtractionResult:
    """Normalized content for one link plus the child links it spawns."""

    content: ContentExtracted | None
    children: list[LinkDetected] = field(default_factory=list)


@dataclass(frozen=True)
class _Normalized:
    title: str | None
    body: str
    embedded_urls: list[str]


def format_social_post(post: SocialPost) -> str:
    """Merge a social post's fields into one text block."""
    lines = [f"Tweet by @{post.author_handle} ({post.author_name})"]
    if post.created_at is not None:
        lines.append(f"Posted: {post.created_at:%Y-%m-%d %H:%M:%S}")
    lines.extend(["", "Content:", post.text])
    if post.media_urls:
        lines.extend(["", "Media:", *post.media_urls])
    if post.linked_urls:
        lines.extend(["", "Links:", *post.linked_urls])
    return "\n".join(lines) + "\n"


def format_video(video: VideoMetadata) -> str:
    return f"Title: {video.title}\n\nDescription: {video.description}"


def format_article(article: Article) -> str:
    if article.title:
        return f"Title: {article.title}\n\n{article.body}"
    return article.body


def format_repository(repository: Repository) -> str:
    parts = [f"Repository: {repository.name}"]
    if repository.description:
        parts.append(f"Description: {repository.description}")
    if repository.readme:
        parts.append(f"README:\n{repository.readme}")
    return "\n\n".join(parts)


class ContentExtractionRouter:
    """Route links to fetchers and normalize what comes back."""

    def __init__(
        self,
        fetchers: ContentFetchers,
        *,
        max_link_depth: int = DEFAULT_MAX_LINK_DEPTH,
        max_embedded_links: int = DEFAULT_MAX_EMBEDDED_LINKS,
    ) -> None:
        self._fetchers = fetchers
        self._max_link_depth = max_link_depth
        self._max_embedded_links = max_embedded_links
        self._dispatch: dict[LinkKind, Callable[[str], Awaitable[_Normalized | None]]] = {
            LinkKind.SOCIAL: self._extract_social,
            LinkKind.VIDEO: self._extract_video,
            LinkKind.ARTICLE: self._extract_article,
            LinkKind.CODE_REPOSITORY: self._extract_repository,
        }

    async def extract(self, link: LinkDetected) -> ContentExtracted | None:
        """Return normalized content for ``link`` or ``None`` if not found."""
        result = await self.route(link)
        return result.content

    async def route(self, link: LinkDetected) -> ExtractionResult:
        """Extract ``link`` and build the child links found in its content."""
        normalized = await self._dispatch[link.kind](link.url)
        if normalized is None:
            log.warning(
                "content_not_found",
                url=link.url,
                kind=link.kind.value,
                **link.meta.log_fields(),
            )
            return ExtractionResult(content=None)

        content = ContentExtracted(
            title=normalized.title,
            body=normalized.body,
            source_url=link.url,
            meta=link.meta,
        )
        children = self.expand(link, normalized.embedded_urls)
        log.info(
            "content_extracted",
            url=link.url,
            kind=link.kind.value,
            body_length=len(content.body),
            embedded_links=len(children),
            **link.meta.log_fields(),
        )
        return ExtractionResult(content=content, children=children)

    def expand(self, parent: LinkDetected, urls: list[str]) -> list[LinkDetected]:
        """Classify embedded URLs into child links of ``parent``."""
        if not urls:
            return []
        if parent.depth >= self._max_link_depth:
            log.info(
                "embedded_links_depth_limit",
                url=parent.url,
                depth=parent.depth,
                skipped=len(urls),
                **parent.meta.log_fields(),
            )
            return []

        seen = {parent.url, *parent.ancestry}
        ancestry = (*parent.ancestry, parent.url)
        children: list[LinkDetected] = []
        for url in urls:
            if url in seen:
                continue
            seen.add(url)
            if len(children) >= self._max_embedded_links:
                log.warning(
                    "embedded_links_capped",
                    url=parent.url,
                    limit=self._max_embedded_links,
                    **parent.meta.log_fields(),
                )
                break
            children.append(
                LinkDetected(
                    url=url,
                    kind=classify_url(url),
                    meta=parent.meta,
                    depth=parent.depth + 1,
                    ancestry=ancestry,
                )
            )
        return children

    async def _extract_social(self, url: str) -> _Normalized | None:
        post = await self._fetchers.social.fetch_social_post(url)
        if post is None:
            return None
        return _Normalized(
            title=f"Tweet by @{post.author_handle}" if post.author_handle else None,
            body=format_social_post(post),
            embedded_urls=list(post.linked_urls),
        )

    async def _extract_video(self, url: str) -> _Normalized | None:
        video = await self._fetchers.video.fetch_video(url)
        if video is None:
            return None
        return _Normalized(
            title=video.title or None,
            body=format_video(video),
            embedded_urls=find_urls(video.description),
        )

    async def _extract_article(self, url: str) -> _Normalized | None:
        article = await self._fetchers.article.fetch_article(url)
        if article is None:
            return None
        return _Normalized(
            title=article.title or None,
            body=format_article(article),
            embedded_urls=find_urls(article.body),
        )

    async def _extract_repository(self, url: str) -> _Normalized | None:
        repository = await self._fetchers.repository.fetch_repository(url)
        if repository is None:
            return None
        return _Normalized(
            title=repository.name or None,
            body=format_repository(repository),
            embedded_urls=find_urls(f"{repository.description}\n{repository.readme}"),
        )
