"""Twitter/X post fetcher using the API v2 tweet lookup."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx

from notebridge.logging import get_logger
from notebridge.pipeline.classifier import extract_tweet_id
from notebridge.sources.http import HttpFetcher
from notebridge.sources.models import FetchError, SocialPost

log = get_logger("notebridge.sources.twitter")

TWITTER_API_BASE = "https://api.twitter.com/2"


class TwitterFetcher(HttpFetcher):
    """Fetch a single tweet with its author, media and expanded links."""

    def __init__(
        self,
        bearer_token: str | None,
        *,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout, client=client)
        self._bearer_token = bearer_token

    async def fetch_social_post(self, url: str) -> SocialPost | None:
        tweet_id = extract_tweet_id(url)
        if not tweet_id:
            log.warning("tweet_id_not_found", url=url)
            return None
        if not self._bearer_token:
            log.warning("twitter_token_missing", url=url)
            return None

        try:
            data = await self._get_json(
                f"{TWITTER_API_BASE}/tweets/{tweet_id}",
                params={
                    "expansions": "author_id,attachments.media_keys",
                    "tweet.fields": "created_at,entities",
                    "user.fields": "name,username",
                    "media.fields": "url,preview_image_url",
                },
                headers={"Authorization": f"Bearer {self._bearer_token}"},
            )
        except FetchError as e:
            log.warning("tweet_fetch_failed", url=url, error=str(e))
            return None

        if "data" not in data:
            log.warning("tweet_not_found", url=url, errors=data.get("errors"))
            return None
        return parse_tweet(data)


def parse_tweet(payload: dict[str, Any]) -> SocialPost:
    """Convert an API v2 tweet lookup payload into a SocialPost."""
    tweet = payload["data"]
    includes = payload.get("includes", {})

    author = next(
        (u for u in includes.get("users", []) if u.get("id") == tweet.get("author_id")),
        {},
    )
    media_urls = [
        m.get("url") or m.get("preview_image_url")
        for m in includes.get("media", [])
        if m.get("url") or m.get("preview_image_url")
    ]

    # Expanded URLs, minus links back to the tweet's own media
    linked_urls: list[str] = []
    for entity in tweet.get("entities", {}).get("urls", []):
        expanded = entity.get("unwound_url") or entity.get("expanded_url") or entity.get("url")
        if not expanded or "/photo/" in expanded or "/video/" in expanded:
            continue
        if expanded not in linked_urls:
            linked_urls.append(expanded)

    created_at = None
    if tweet.get("created_at"):
        created_at = datetime.fromisoformat(tweet["created_at"].replace("Z", "+00:00"))

    return SocialPost(
        id=str(tweet["id"]),
        text=tweet.get("text", ""),
        author_name=author.get("name", ""),
        author_handle=author.get("username", ""),
        created_at=created_at,
        media_urls=media_urls,
        linked_urls=linked_urls,
    )
