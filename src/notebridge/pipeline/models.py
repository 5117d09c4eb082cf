"""Messages exchanged between pipeline stages.

Every message is a frozen dataclass carrying the envelope ``MessageMeta``
of the chat message it descends from. Stages never mutate a message they
received; they build a new one and copy ``meta`` across unchanged.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum


class LinkKind(Enum):
    """Source kinds a detected link can be routed to."""

    SOCIAL = "social"
    VIDEO = "video"
    ARTICLE = "article"
    CODE_REPOSITORY = "code_repository"


@dataclass(frozen=True)
class MessageMeta:
    """Envelope metadata tracing every message back to its chat origin."""

    chat_id: int
    message_id: str
    correlation_id: str

    @classmethod
    def new(cls, chat_id: int, message_id: str) -> MessageMeta:
        """Allocate envelope metadata for a freshly received chat message."""
        return cls(chat_id=chat_id, message_id=message_id, correlation_id=uuid.uuid4().hex)

    def log_fields(self) -> dict[str, object]:
        return {
            "chat_id": self.chat_id,
            "message_id": self.message_id,
            "correlation_id": self.correlation_id,
        }


@dataclass(frozen=True)
class RawMessage:
    """A chat message as received from the transport."""

    text: str
    meta: MessageMeta


@dataclass(frozen=True)
class LinkDetected:
    """One URL found in a chat message or inside extracted content."""

    url: str
    kind: LinkKind
    meta: MessageMeta
    depth: int = 0
    ancestry: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContentExtracted:
    """Source-independent text extracted for one link."""

    body: str
    source_url: str
    meta: MessageMeta
    title: str | None = None


@dataclass(frozen=True)
class ContentSummarized:
    """Extracted content plus its AI summary."""

    summary: str
    original_body: str
    source_url: str
    meta: MessageMeta
    title: str | None = None


@dataclass(frozen=True)
class TagsGenerated:
    """Summarized content plus its ordered, de-duplicated tags."""

    tags: tuple[str, ...]
    summary: str
    original_body: str
    source_url: str
    meta: MessageMeta


@dataclass(frozen=True)
class NoteReady:
    """A fully assembled note, ready for persistence."""

    title: str
    content: str
    tags: tuple[str, ...]
    source_url: str
    meta: MessageMeta
    original_content: str = ""


@dataclass(frozen=True)
class NoteCreated:
    """A note that the persistence collaborator wrote to disk."""

    file_path: str
    meta: MessageMeta


@dataclass(frozen=True)
class FailedRun:
    """Bookkeeping for a run the bus abandoned after a handler error."""

    message_type: str
    meta: MessageMeta
    error: str
    error_type: str = field(default="Exception")


PipelineMessage = (
    RawMessage
    | LinkDetected
    | ContentExtracted
    | ContentSummarized
    | TagsGenerated
    | NoteReady
    | NoteCreated
)
