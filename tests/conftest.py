"""Shared fixtures for the NoteBridge test suite."""

import pytest
from fakes import FakeFetcher

from notebridge.config import get_settings
from notebridge.pipeline.models import MessageMeta


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Make sure no test sees settings cached by another."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def meta() -> MessageMeta:
    """Envelope metadata for a chat message."""
    return MessageMeta(chat_id=1, message_id="m1", correlation_id="corr-1")


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()
