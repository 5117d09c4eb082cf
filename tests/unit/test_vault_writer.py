"""Unit tests for the Obsidian vault writer."""

import json
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from notebridge.pipeline.models import NoteCreated, NoteReady
from notebridge.vault.writer import NotePersister, ObsidianVaultWriter, sanitize_filename

FIXED_NOW = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


def _note(meta, title="Async Python: a deep dive", **overrides) -> NoteReady:
    fields = {
        "title": title,
        "content": "A summary of the talk.",
        "tags": ("python", "web dev", "auto-generated"),
        "source_url": "https://youtu.be/dQw4w9WgXcQ",
        "original_content": "Title: Talk\n\nDescription: Long description",
        "meta": meta,
    }
    fields.update(overrides)
    return NoteReady(**fields)


class TestSanitizeFilename:
    def test_unsafe_characters_replaced(self):
        assert sanitize_filename('a/b: "c"?') == "a b c"

    def test_empty_name_falls_back(self):
        assert sanitize_filename("///") == "Untitled"

    def test_long_names_truncated(self):
        assert len(sanitize_filename("x" * 300)) == 100


class TestObsidianVaultWriter:
    """Tests for rendering and writing notes."""

    def test_render_front_matter_and_body(self, tmp_path, meta):
        writer = ObsidianVaultWriter(tmp_path, clock=lambda: FIXED_NOW)

        text = writer.render(_note(meta), FIXED_NOW)

        assert text.startswith("---\n")
        assert f"title: {json.dumps('Async Python: a deep dive')}" in text
        assert 'source: "https://youtu.be/dQw4w9WgXcQ"' in text
        assert '  - "web-dev"' in text
        assert "created: 2024-06-01T09:30:00+00:00" in text
        assert 'correlation_id: "corr-1"' in text
        assert "# Async Python: a deep dive\n\nA summary of the talk." in text
        assert "Source: https://youtu.be/dQw4w9WgXcQ" in text
        assert "## Original content\n\nTitle: Talk" in text

    def test_render_without_source_or_original(self, tmp_path, meta):
        writer = ObsidianVaultWriter(tmp_path)

        text = writer.render(_note(meta, source_url="", original_content=""), FIXED_NOW)

        assert "Source:" not in text
        assert "## Original content" not in text

    def test_persist_writes_dated_file(self, tmp_path, meta):
        writer = ObsidianVaultWriter(tmp_path, "Inbox", clock=lambda: FIXED_NOW)

        path = writer.persist(_note(meta))

        assert path == tmp_path / "Inbox" / "2024-06-01 Async Python a deep dive.md"
        assert path.read_text(encoding="utf-8").startswith("---\n")

    def test_persist_never_overwrites(self, tmp_path, meta):
        writer = ObsidianVaultWriter(tmp_path, clock=lambda: FIXED_NOW)

        first = writer.persist(_note(meta))
        second = writer.persist(_note(meta))
        third = writer.persist(_note(meta))

        assert first != second != third
        assert second.name == "2024-06-01 Async Python a deep dive (2).md"
        assert third.name == "2024-06-01 Async Python a deep dive (3).md"

    def test_concurrent_writers_get_distinct_files(self, tmp_path, meta):
        """Writers racing on the same title each claim their own file."""
        writer = ObsidianVaultWriter(tmp_path, clock=lambda: FIXED_NOW)
        barrier = threading.Barrier(16)

        def write_one(_):
            barrier.wait()
            return writer.persist(_note(meta))

        with ThreadPoolExecutor(max_workers=16) as pool:
            paths = list(pool.map(write_one, range(16)))

        assert len(set(paths)) == 16
        assert len(list(writer.directory.glob("*.md"))) == 16

    def test_empty_folder_writes_to_vault_root(self, tmp_path):
        writer = ObsidianVaultWriter(tmp_path, "")
        assert writer.directory == tmp_path


class TestNotePersister:
    """Tests for the NoteReady subscriber."""

    @pytest.mark.asyncio

    async def test_persist_reports_created_note(self, tmp_path, meta):
        on_created = AsyncMock()
        persister = NotePersister(
            ObsidianVaultWriter(tmp_path, clock=lambda: FIXED_NOW),
            on_created=on_created,
        )

        created = await persister(_note(meta))

        assert isinstance(created, NoteCreated)
        assert created.meta == meta
        assert created.file_path.endswith("2024-06-01 Async Python a deep dive.md")
        on_created.assert_awaited_once_with(created)

    @pytest.mark.asyncio

    async def test_persist_without_callback(self, tmp_path, meta):
        persister = NotePersister(ObsidianVaultWriter(tmp_path))

        created = await persister(_note(meta))

        assert created.meta == meta
