"""Result shapes and protocols for the content fetchers.

Every fetcher returns ``None`` when the resource cannot be found or read;
the extraction router treats that as a normal end of the run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol


class FetchError(Exception):
    """Raised inside a fetcher when a remote call fails."""


@dataclass
class SocialPost:
    """A post on a social network (tweet)."""

    id: str
    text: str
    author_name: str
    author_handle: str
    created_at: datetime | None = None
    media_urls: list[str] = field(default_factory=list)
    linked_urls: list[str] = field(default_factory=list)


@dataclass
class VideoMetadata:
    """Title and description of a video."""

    title: str
    description: str = ""


@dataclass
class Article:
    """A web page reduced to its title and readable text."""

    title: str
    body: str


@dataclass
class Repository:
    """A source-code repository."""

    name: str
    description: str = ""
    readme: str = ""


class SocialPostFetcher(Protocol):
    async def fetch_social_post(self, url: str) -> SocialPost | None: ...


class VideoFetcher(Protocol):
    async def fetch_video(self, url: str) -> VideoMetadata | None: ...


class ArticleFetcher(Protocol):
    async def fetch_article(self, url: str) -> Article | None: ...


class RepositoryFetcher(Protocol):
    async def fetch_repository(self, url: str) -> Repository | None: ...


@dataclass
class ContentFetchers:
    """The set of fetch capabilities the extraction router dispatches to."""

    social: SocialPostFetcher
    video: VideoFetcher
    article: ArticleFetcher
    repository: RepositoryFetcher
