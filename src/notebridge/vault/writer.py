"""Obsidian vault note writer.

Notes are written as markdown files with YAML front matter. String values
in the front matter are JSON-quoted, which is valid YAML and keeps colons
and quotes in titles safe.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path

from notebridge.logging import get_logger
from notebridge.pipeline.models import NoteCreated, NoteReady

log = get_logger("notebridge.vault.writer")

# Characters Obsidian (or the filesystem) does not accept in note names
_UNSAFE_FILENAME = re.compile(r'[\\/:*?"<>|#^\[\]\x00-\x1f]')
MAX_FILENAME_LENGTH = 100


def sanitize_filename(title: str) -> str:
    name = _UNSAFE_FILENAME.sub(" ", title)
    name = re.sub(r"\s+", " ", name).strip().strip(".")
    return name[:MAX_FILENAME_LENGTH].strip() or "Untitled"


def _tag_value(tag: str) -> str:
    # Obsidian tags cannot contain spaces
    return re.sub(r"\s+", "-", tag.strip())


class ObsidianVaultWriter:
    """Write notes into ``<vault>/<folder>/``."""

    def __init__(
        self,
        vault_path: Path | str,
        folder: str = "Inbox",
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._directory = Path(vault_path) / folder if folder else Path(vault_path)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def directory(self) -> Path:
        return self._directory

    def render(self, note: NoteReady, created: datetime) -> str:
        """Render the markdown document for ``note``."""
        lines = [
            "---",
            f"title: {json.dumps(note.title, ensure_ascii=False)}",
            f"source: {json.dumps(note.source_url, ensure_ascii=False)}",
            "tags:",
            *[f"  - {json.dumps(_tag_value(tag), ensure_ascii=False)}" for tag in note.tags],
            f"created: {created.isoformat(timespec='seconds')}",
            f"correlation_id: {json.dumps(note.meta.correlation_id)}",
            "---",
            "",
            f"# {note.title}",
            "",
            note.content.strip(),
            "",
        ]
        if note.source_url:
            lines.extend([f"Source: {note.source_url}", ""])
        if note.original_content.strip():
            lines.extend(["## Original content", "", note.original_content.strip(), ""])
        return "\n".join(lines)

    def persist(self, note: NoteReady) -> Path:
        """Write ``note`` to disk and return its path.

        Raises:
            OSError: the vault directory or file could not be written.
        """
        created = self._clock()
        self._directory.mkdir(parents=True, exist_ok=True)
        stem = f"{created:%Y-%m-%d} {sanitize_filename(note.title)}"
        content = self.render(note, created)
        path = self._directory / f"{stem}.md"
        counter = 2
        while True:
            # Exclusive create claims the name even when writers race
            try:
                with path.open("x", encoding="utf-8") as handle:
                    handle.write(content)
                break
            except FileExistsError:
                path = self._directory / f"{stem} ({counter}).md"
                counter += 1
        log.info("note_written", path=str(path), **note.meta.log_fields())
        return path


class NotePersister:
    """NoteReady subscriber that writes notes and reports where they went."""

    def __init__(
        self,
        writer: ObsidianVaultWriter,
        *,
        on_created: Callable[[NoteCreated], Awaitable[object]] | None = None,
    ) -> None:
        self._writer = writer
        self._on_created = on_created

    async def __call__(self, note: NoteReady) -> NoteCreated:
        path = await asyncio.to_thread(self._writer.persist, note)
        created = NoteCreated(file_path=str(path), meta=note.meta)
        if self._on_created is not None:
            await self._on_created(created)
        return created
