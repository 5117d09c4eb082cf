"""Generic web article fetcher."""

from __future__ import annotations

import re

import httpx
from bs4 import BeautifulSoup

from notebridge.constants import MAX_ARTICLE_CHARS
from notebridge.logging import get_logger
from notebridge.sources.http import HttpFetcher
from notebridge.sources.models import Article, FetchError

log = get_logger("notebridge.sources.articles")

_NOISE_TAGS = ["script", "style", "nav", "footer", "header", "aside", "noscript", "form"]


class WebArticleFetcher(HttpFetcher):
    """Download an HTML page and reduce it to title and readable text."""

    def __init__(
        self,
        *,
        timeout: float = 20.0,
        max_chars: int = MAX_ARTICLE_CHARS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout, client=client)
        self._max_chars = max_chars

    async def fetch_article(self, url: str) -> Article | None:
        try:
            response = await self._get(url)
        except FetchError as e:
            log.warning("article_fetch_failed", url=url, error=str(e))
            return None

        content_type = response.headers.get("content-type", "")
        if "html" not in content_type and "text" not in content_type:
            log.warning("article_not_html", url=url, content_type=content_type)
            return None

        article = parse_article(response.text, max_chars=self._max_chars)
        if not article.body and not article.title:
            log.warning("article_empty", url=url)
            return None
        return article


def parse_article(html: str, *, max_chars: int = MAX_ARTICLE_CHARS) -> Article:
    """Extract a title and the main text from an HTML document."""
    soup = BeautifulSoup(html, "html.parser")

    og_title = soup.find("meta", property="og:title")
    title_tag = soup.find("title")
    h1_tag = soup.find("h1")
    if og_title and og_title.get("content"):
        title = og_title["content"]
    elif title_tag:
        title = title_tag.get_text(strip=True)
    elif h1_tag:
        title = h1_tag.get_text(strip=True)
    else:
        title = ""

    for element in soup.find_all(_NOISE_TAGS):
        element.decompose()

    main_content = (
        soup.find("article")
        or soup.find("main")
        or soup.find(attrs={"class": re.compile(r"content|post|article|entry", re.I)})
        or soup.find("body")
        or soup
    )
    text = main_content.get_text(separator=" ", strip=True)
    text = re.sub(r"\s+", " ", text)

    return Article(title=str(title).strip(), body=text[:max_chars])
