"""In-memory fakes shared by unit and integration tests."""

from __future__ import annotations

from notebridge.ai.providers import AIProvider, ProviderError
from notebridge.sources.models import (
    Article,
    ContentFetchers,
    Repository,
    SocialPost,
    VideoMetadata,
)


class FakeProvider(AIProvider):
    """Provider returning canned answers, or failing on demand."""

    def __init__(
        self,
        name: str,
        *,
        summary: str = "A summary.",
        tags: list[str] | None = None,
        fail: bool = False,
    ) -> None:
        self.name = name
        self._summary = summary
        self._tags = tags if tags is not None else ["python", "testing", "notes"]
        self._fail = fail
        self.summarize_calls: list[tuple[str, str]] = []
        self.tag_calls: list[str] = []
        self.closed = False

    async def complete(self, prompt: str) -> str:
        raise NotImplementedError

    async def summarize(self, text: str, source_url: str) -> str:
        self.summarize_calls.append((text, source_url))
        if self._fail:
            raise ProviderError(f"{self.name} is down")
        return self._summary

    async def generate_tags(self, text: str) -> list[str]:
        self.tag_calls.append(text)
        if self._fail:
            raise ProviderError(f"{self.name} is down")
        return list(self._tags)

    async def close(self) -> None:
        self.closed = True


class FakeFetcher:
    """In-memory fetcher for all four link kinds, keyed by URL."""

    def __init__(
        self,
        *,
        posts: dict[str, SocialPost] | None = None,
        videos: dict[str, VideoMetadata] | None = None,
        articles: dict[str, Article] | None = None,
        repositories: dict[str, Repository] | None = None,
    ) -> None:
        self.posts = posts or {}
        self.videos = videos or {}
        self.articles = articles or {}
        self.repositories = repositories or {}
        self.requested: list[str] = []

    async def fetch_social_post(self, url: str) -> SocialPost | None:
        self.requested.append(url)
        return self.posts.get(url)

    async def fetch_video(self, url: str) -> VideoMetadata | None:
        self.requested.append(url)
        return self.videos.get(url)

    async def fetch_article(self, url: str) -> Article | None:
        self.requested.append(url)
        return self.articles.get(url)

    async def fetch_repository(self, url: str) -> Repository | None:
        self.requested.append(url)
        return self.repositories.get(url)

    def as_fetchers(self) -> ContentFetchers:
        return ContentFetchers(social=self, video=self, article=self, repository=self)
