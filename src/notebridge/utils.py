"""Shared utilities for NoteBridge."""

import re
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog

URL_PATTERN = re.compile(r"https?://[^\s]+", re.IGNORECASE)

# Characters that usually close a sentence rather than belong to a URL
_URL_TRAILING = ".,;:!?>'\""
_BRACKET_PAIRS = {")": "(", "]": "[", "}": "{"}


@asynccontextmanager
async def timed_operation(
    name: str,
    log: structlog.stdlib.BoundLogger | None = None,
    **extra: Any,
) -> AsyncIterator[dict[str, Any]]:
    """Context manager that measures elapsed time for an async operation.

    Usage::

        async with timed_operation("provider_call", log=log) as timing:
            await provider.summarize(text, url)
        print(timing["elapsed_ms"])

    Args:
        name: A label for the operation (used in log messages).
        log: Optional structlog logger; if provided, an info-level message
             is emitted on exit.
        **extra: Additional key-value pairs forwarded to the log call.

    Yields:
        A mutable dict that will contain ``elapsed_ms`` after the block exits.
    """
    start = time.perf_counter()
    result: dict[str, Any] = {}
    try:
        yield result
    finally:
        result["elapsed_ms"] = round((time.perf_counter() - start) * 1000, 2)
        if log:
            log.info(name, duration_ms=result["elapsed_ms"], **extra)


def clean_url(url: str) -> str:
    """Strip sentence punctuation that a URL regex picked up at the end.

    A closing bracket is only stripped when it has no opening partner inside
    the URL, so links like ``/wiki/Python_(programming_language)`` survive.
    """
    while url:
        last = url[-1]
        if last in _URL_TRAILING:
            url = url[:-1]
        elif last in _BRACKET_PAIRS and url.count(last) > url.count(_BRACKET_PAIRS[last]):
            url = url[:-1]
        else:
            break
    return url


def find_urls(text: str) -> list[str]:
    """Return every http(s) URL in ``text`` in order of appearance.

    Duplicates are dropped; the first occurrence wins.
    """
    if not text:
        return []
    urls: list[str] = []
    for match in URL_PATTERN.finditer(text):
        url = clean_url(match.group(0))
        if url and url not in urls:
            urls.append(url)
    return urls


def split_text_chunks(content: str, max_length: int) -> list[str]:
    """Split text into chunks that are each <= ``max_length``.

    Prefers splitting at newline boundaries, but hard-splits long lines when
    needed so every chunk always respects the chat message length limit.
    """
    if max_length <= 0:
        raise ValueError("max_length must be > 0")

    if len(content) <= max_length:
        return [content] if content else []

    chunks: list[str] = []
    remaining = content

    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break

        split_at = remaining.rfind("\n", 0, max_length + 1)
        if split_at > 0:
            chunk = remaining[:split_at]
            if chunk:
                chunks.append(chunk)
            remaining = remaining[split_at + 1 :]
            continue

        chunks.append(remaining[:max_length])
        remaining = remaining[max_length:]

    return [chunk for chunk in chunks if chunk]
