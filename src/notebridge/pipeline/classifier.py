"""Link discovery and classification.

URLs are pulled out of free text with a generic pattern and each one is
matched against the source-specific patterns in priority order. The first
rule that matches decides the kind; anything unmatched is an article.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlparse

from notebridge.logging import get_logger
from notebridge.pipeline.models import LinkKind
from notebridge.utils import find_urls

log = get_logger("notebridge.pipeline.classifier")

SOCIAL_PATTERN = re.compile(
    r"^https?://(?:www\.|mobile\.)?(?:twitter\.com|x\.com)/\w+/status/(\d+)",
    re.IGNORECASE,
)
VIDEO_PATTERN = re.compile(
    r"^https?://(?:www\.|m\.)?(?:youtube\.com/watch\?(?:[^\s#]*&)?v=|youtu\.be/)"
    r"([a-zA-Z0-9_-]{11})",
    re.IGNORECASE,
)
REPOSITORY_PATTERN = re.compile(
    r"^https?://(?:www\.)?github\.com/([\w.-]+)/([\w.-]+)",
    re.IGNORECASE,
)

# Order matters: the first matching rule wins
_RULES: tuple[tuple[re.Pattern[str], LinkKind], ...] = (
    (SOCIAL_PATTERN, LinkKind.SOCIAL),
    (VIDEO_PATTERN, LinkKind.VIDEO),
    (REPOSITORY_PATTERN, LinkKind.CODE_REPOSITORY),
)


def classify_url(url: str) -> LinkKind:
    """Return the link kind for a single URL."""
    for pattern, kind in _RULES:
        if pattern.search(url):
            return kind
    return LinkKind.ARTICLE


def classify(raw_text: str) -> list[tuple[str, LinkKind]]:
    """Find all URLs in ``raw_text`` and classify each one.

    Empty input, or input without any URL, yields an empty list.
    """
    if not raw_text or not raw_text.strip():
        log.info("classify_empty_input")
        return []

    links = [(url, classify_url(url)) for url in find_urls(raw_text)]
    if not links:
        log.info("classify_no_urls", text_length=len(raw_text))
    return links


def extract_tweet_id(url: str) -> str:
    """Return the numeric status id of a Twitter/X URL, or ``""``."""
    match = SOCIAL_PATTERN.search(url or "")
    return match.group(1) if match else ""


def extract_video_id(url: str) -> str:
    """Return the 11-character YouTube video id, or ``""``."""
    match = VIDEO_PATTERN.search(url or "")
    if match:
        return match.group(1)
    # Fall back to query parsing for URLs with unusual parameter order
    parsed = urlparse(url or "")
    if parsed.hostname and "youtube.com" in parsed.hostname:
        return parse_qs(parsed.query).get("v", [""])[0]
    return ""


def extract_repository(url: str) -> tuple[str, str] | None:
    """Return ``(owner, repo)`` for a GitHub URL, or ``None``."""
    match = REPOSITORY_PATTERN.search(url or "")
    if not match:
        return None
    owner, repo = match.group(1), match.group(2)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return owner, repo
