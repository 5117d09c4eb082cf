"""Shared HTTP plumbing for the content fetchers."""

from __future__ import annotations

from typing import Any

import httpx

from notebridge.sources.models import FetchError

USER_AGENT = "NoteBridge/0.1 (+https://github.com/notebridge)"


class HttpFetcher:
    """Base class wrapping one ``httpx.AsyncClient`` per fetcher."""

    def __init__(
        self,
        *,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as exc:
            raise FetchError(f"HTTP {exc.response.status_code} for {url}") from exc
        except httpx.RequestError as exc:
            raise FetchError(f"Request to {url} failed: {exc}") from exc

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        response = await self._get(url, params=params, headers=headers)
        try:
            result: dict[str, Any] = response.json()
        except ValueError as exc:
            raise FetchError(f"Invalid JSON from {url}") from exc
        return result

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
