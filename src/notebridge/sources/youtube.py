"""YouTube video metadata fetcher.

Uses the Data API when a key is configured; otherwise falls back to the
public oEmbed endpoint, which has a title but no description.
"""

from __future__ import annotations

import httpx

from notebridge.logging import get_logger
from notebridge.pipeline.classifier import extract_video_id
from notebridge.sources.http import HttpFetcher
from notebridge.sources.models import FetchError, VideoMetadata

log = get_logger("notebridge.sources.youtube")

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"
OEMBED_URL = "https://www.youtube.com/oembed"


class YouTubeFetcher(HttpFetcher):
    """Fetch title and description of a YouTube video."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout, client=client)
        self._api_key = api_key

    async def fetch_video(self, url: str) -> VideoMetadata | None:
        video_id = extract_video_id(url)
        if not video_id:
            log.warning("video_id_not_found", url=url)
            return None

        try:
            if self._api_key:
                return await self._fetch_from_api(video_id)
            return await self._fetch_from_oembed(video_id)
        except FetchError as e:
            log.warning("video_fetch_failed", url=url, video_id=video_id, error=str(e))
            return None

    async def _fetch_from_api(self, video_id: str) -> VideoMetadata | None:
        data = await self._get_json(
            f"{YOUTUBE_API_BASE}/videos",
            params={"part": "snippet", "id": video_id, "key": self._api_key},
        )
        items = data.get("items") or []
        if not items:
            log.warning("video_not_found", video_id=video_id)
            return None
        snippet = items[0].get("snippet", {})
        return VideoMetadata(
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
        )

    async def _fetch_from_oembed(self, video_id: str) -> VideoMetadata:
        data = await self._get_json(
            OEMBED_URL,
            params={"url": f"https://www.youtube.com/watch?v={video_id}", "format": "json"},
        )
        author = data.get("author_name", "")
        return VideoMetadata(
            title=data.get("title") or f"YouTube Video {video_id}",
            description=f"Channel: {author}" if author else "",
        )
