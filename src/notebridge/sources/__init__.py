"""Content fetchers for the link kinds the pipeline understands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from notebridge.sources.articles import WebArticleFetcher
from notebridge.sources.github import GitHubFetcher
from notebridge.sources.models import ContentFetchers
from notebridge.sources.twitter import TwitterFetcher
from notebridge.sources.youtube import YouTubeFetcher

if TYPE_CHECKING:
    from pydantic import SecretStr

    from notebridge.config import Settings


def _secret(value: SecretStr | None) -> str | None:
    return value.get_secret_value() if value else None


def build_content_fetchers(settings: Settings) -> ContentFetchers:
    """Create the HTTP-backed fetchers from settings."""
    timeout = settings.http_timeout
    return ContentFetchers(
        social=TwitterFetcher(_secret(settings.twitter_bearer_token), timeout=timeout),
        video=YouTubeFetcher(_secret(settings.youtube_api_key), timeout=timeout),
        article=WebArticleFetcher(timeout=timeout),
        repository=GitHubFetcher(_secret(settings.github_token), timeout=timeout),
    )


async def close_content_fetchers(fetchers: ContentFetchers) -> None:
    """Close every fetcher that owns network resources."""
    for fetcher in (fetchers.social, fetchers.video, fetchers.article, fetchers.repository):
        close = getattr(fetcher, "close", None)
        if close is not None:
            await close()
