"""GitHub repository fetcher using the REST API."""

from __future__ import annotations

import base64

import httpx

from notebridge.constants import MAX_README_CHARS
from notebridge.logging import get_logger
from notebridge.pipeline.classifier import extract_repository
from notebridge.sources.http import HttpFetcher
from notebridge.sources.models import FetchError, Repository

log = get_logger("notebridge.sources.github")

GITHUB_API_BASE = "https://api.github.com"


class GitHubFetcher(HttpFetcher):
    """Fetch repository name, description and README."""

    def __init__(
        self,
        token: str | None = None,
        *,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout, client=client)
        self._token = token

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def fetch_repository(self, url: str) -> Repository | None:
        parts = extract_repository(url)
        if parts is None:
            log.warning("repository_url_invalid", url=url)
            return None
        owner, repo = parts

        try:
            data = await self._get_json(
                f"{GITHUB_API_BASE}/repos/{owner}/{repo}", headers=self._headers()
            )
        except FetchError as e:
            log.warning("repository_fetch_failed", url=url, error=str(e))
            return None

        return Repository(
            name=data.get("full_name") or f"{owner}/{repo}",
            description=data.get("description") or "",
            readme=await self._fetch_readme(owner, repo),
        )

    async def _fetch_readme(self, owner: str, repo: str) -> str:
        # A repository without a README is still worth a note
        try:
            data = await self._get_json(
                f"{GITHUB_API_BASE}/repos/{owner}/{repo}/readme", headers=self._headers()
            )
        except FetchError as e:
            log.info("readme_unavailable", owner=owner, repo=repo, error=str(e))
            return ""

        if data.get("encoding") != "base64":
            return ""
        raw = base64.b64decode(data.get("content", ""))
        return raw.decode("utf-8", errors="replace")[:MAX_README_CHARS]
