"""Title and source URL heuristics for note assembly."""

from __future__ import annotations

import re

from notebridge.constants import PLACEHOLDER_TITLE, TITLE_BOILERPLATE_PREFIXES, TITLE_MAX_WORDS
from notebridge.utils import clean_url

_HEADING_LEAD = re.compile(r"^#{1,6}\s+")
# Emphasis markers that wrap the whole line, e.g. **Title** or _Title_
_EMPHASIS_WRAP = re.compile(r"^([*_]{1,3})(\S(?:.*\S)?)\1$")
# Emphasis runs left dangling at either end once a prefix is cut away
_DANGLING_EMPHASIS = re.compile(r"^[*_]{1,3}(?=\s)|(?<=\s)[*_]{1,3}$")


def derive_title(content: str) -> str:
    """Build a short title from the first non-empty line of ``content``."""
    first_line = next((line.strip() for line in (content or "").splitlines() if line.strip()), "")

    line = _HEADING_LEAD.sub("", first_line)
    wrapped = _EMPHASIS_WRAP.match(line)
    if wrapped:
        line = wrapped.group(2)
    for prefix in TITLE_BOILERPLATE_PREFIXES:
        unmarked = line.lstrip("*_")
        if unmarked.lower().startswith(prefix.lower()):
            line = unmarked[len(prefix) :]
    line = _DANGLING_EMPHASIS.sub("", line.strip()).strip()
    if not line.strip("*_"):
        line = ""

    title = " ".join(line.split()[:TITLE_MAX_WORDS]).strip()
    return title or PLACEHOLDER_TITLE


def derive_source_url(content: str, fallback: str = "") -> str:
    """Return the first URL-looking token in ``content``.

    Falls back to ``fallback`` (usually the URL the content was extracted
    from), then to an empty string.
    """
    for line in (content or "").splitlines():
        if "http" not in line:
            continue
        for word in line.split():
            if word.startswith("http"):
                url = clean_url(word)
                if url:
                    return url
    return fallback or ""
