"""Unit tests for the PipelineBus."""

import asyncio
from dataclasses import replace

import pytest

from notebridge.pipeline.bus import (
    EnvelopeMismatchError,
    HandlerAlreadyRegisteredError,
    PipelineBus,
    UnroutableMessageError,
)
from notebridge.pipeline.models import (
    ContentExtracted,
    LinkDetected,
    LinkKind,
    MessageMeta,
    RawMessage,
)


@pytest.fixture
async def bus():
    """A running bus, stopped after the test."""
    bus = PipelineBus(workers=2)
    await bus.start()
    yield bus
    await bus.stop()


class TestRegistration:
    """Tests for point-to-point handler registration."""

    def test_second_handler_rejected(self):
        bus = PipelineBus()

        async def handler(message):
            return None

        bus.register(RawMessage, handler)
        with pytest.raises(HandlerAlreadyRegisteredError):
            bus.register(RawMessage, handler)
        assert bus.has_handler(RawMessage)
        assert not bus.has_handler(LinkDetected)

    @pytest.mark.asyncio

    async def test_unroutable_message_rejected(self, meta):
        bus = PipelineBus()

        with pytest.raises(UnroutableMessageError):
            await bus.send(RawMessage(text="x", meta=meta))

    def test_workers_must_be_positive(self):
        with pytest.raises(ValueError):
            PipelineBus(workers=0)


class TestDelivery:
    """Tests for dispatch and handoff."""

    @pytest.mark.asyncio

    async def test_emitted_messages_are_delivered(self, bus, meta):
        received = []

        async def detect(message: RawMessage):
            return [
                LinkDetected(url="https://a.example", kind=LinkKind.ARTICLE, meta=message.meta),
                LinkDetected(url="https://b.example", kind=LinkKind.ARTICLE, meta=message.meta),
            ]

        async def extract(message: LinkDetected):
            received.append(message)

        bus.register(RawMessage, detect)
        bus.register(LinkDetected, extract)

        await bus.send(RawMessage(text="x", meta=meta))
        await bus.join()

        assert sorted(m.url for m in received) == ["https://a.example", "https://b.example"]
        assert all(m.meta == meta for m in received)

    @pytest.mark.asyncio

    async def test_single_emitted_message(self, bus, meta):
        received = []

        async def detect(message: RawMessage):
            return LinkDetected(url="https://a.example", kind=LinkKind.ARTICLE, meta=message.meta)

        async def extract(message: LinkDetected):
            received.append(message.url)

        bus.register(RawMessage, detect)
        bus.register(LinkDetected, extract)

        await bus.send(RawMessage(text="x", meta=meta))
        await bus.join()

        assert received == ["https://a.example"]

    @pytest.mark.asyncio

    async def test_runs_are_processed_concurrently(self, meta):
        """A slow run does not block another one."""
        bus = PipelineBus(workers=2)
        release = asyncio.Event()
        finished = []

        async def handler(message: RawMessage):
            if message.text == "slow":
                await release.wait()
            finished.append(message.text)
            if message.text == "fast":
                release.set()

        bus.register(RawMessage, handler)
        await bus.start()
        try:
            await bus.send(RawMessage(text="slow", meta=meta))
            await bus.send(RawMessage(text="fast", meta=replace(meta, correlation_id="corr-2")))
            await asyncio.wait_for(bus.join(), timeout=1)
        finally:
            await bus.stop()

        assert finished == ["fast", "slow"]


class TestFailures:
    """Tests for handler failure isolation."""

    @pytest.mark.asyncio

    async def test_failure_is_recorded_and_contained(self, bus, meta):
        other = MessageMeta(chat_id=2, message_id="m2", correlation_id="corr-2")
        handled = []

        async def handler(message: RawMessage):
            if message.meta == meta:
                raise RuntimeError("provider exploded")
            handled.append(message.meta)

        bus.register(RawMessage, handler)

        await bus.send(RawMessage(text="bad", meta=meta))
        await bus.send(RawMessage(text="good", meta=other))
        await bus.join()

        assert handled == [other]
        assert len(bus.failed_runs) == 1
        failed = bus.failed_runs[0]
        assert failed.meta == meta
        assert failed.message_type == "RawMessage"
        assert failed.error == "provider exploded"
        assert failed.error_type == "RuntimeError"

    @pytest.mark.asyncio

    async def test_envelope_mismatch_fails_the_run(self, bus, meta):
        received = []

        async def detect(message: RawMessage):
            return LinkDetected(
                url="https://a.example",
                kind=LinkKind.ARTICLE,
                meta=replace(message.meta, chat_id=999),
            )

        async def extract(message: LinkDetected):
            received.append(message)

        bus.register(RawMessage, detect)
        bus.register(LinkDetected, extract)

        await bus.send(RawMessage(text="x", meta=meta))
        await bus.join()

        assert received == []
        assert bus.failed_runs[0].error_type == EnvelopeMismatchError.__name__

    @pytest.mark.asyncio

    async def test_failed_runs_are_bounded(self, meta):
        bus = PipelineBus(max_failed_runs=2)

        async def handler(message):
            raise ValueError(message.text)

        bus.register(RawMessage, handler)
        for text in ("a", "b", "c"):
            await bus.dispatch(RawMessage(text=text, meta=meta))

        assert [run.error for run in bus.failed_runs] == ["b", "c"]

    @pytest.mark.asyncio

    async def test_mismatch_anywhere_blocks_every_emitted_message(self, meta):
        bus = PipelineBus()
        received = []

        async def detect(message: RawMessage):
            return [
                LinkDetected(url="https://a.example", kind=LinkKind.ARTICLE, meta=message.meta),
                LinkDetected(
                    url="https://b.example",
                    kind=LinkKind.ARTICLE,
                    meta=replace(message.meta, chat_id=999),
                ),
            ]

        async def extract(message: LinkDetected):
            received.append(message)

        bus.register(RawMessage, detect)
        bus.register(LinkDetected, extract)

        await bus.dispatch(RawMessage(text="x", meta=meta))

        assert bus._queue.qsize() == 0
        assert received == []
        assert bus.failed_runs[0].error_type == EnvelopeMismatchError.__name__


class TestCancellation:
    """Tests for per-run cancellation at stage boundaries."""

    @pytest.mark.asyncio

    async def test_cancelled_run_is_not_dispatched(self, meta):
        bus = PipelineBus()
        handled = []

        async def handler(message):
            handled.append(message)

        bus.register(ContentExtracted, handler)
        bus.cancel(meta.correlation_id)

        await bus.dispatch(ContentExtracted(body="b", source_url="", meta=meta))

        assert handled == []
        assert bus.is_cancelled("corr-1")

    @pytest.mark.asyncio

    async def test_cancelled_run_stops_at_next_boundary(self, bus, meta):
        handled = []

        async def detect(message: RawMessage):
            bus.cancel(message.meta.correlation_id)
            return LinkDetected(url="https://a.example", kind=LinkKind.ARTICLE, meta=message.meta)

        async def extract(message: LinkDetected):
            handled.append(message)

        bus.register(RawMessage, detect)
        bus.register(LinkDetected, extract)

        await bus.send(RawMessage(text="x", meta=meta))
        await bus.join()

        assert handled == []
        assert bus.failed_runs == []

    def test_cancelled_ids_are_bounded(self):
        bus = PipelineBus(max_cancelled_runs=2)

        for correlation_id in ("a", "b", "c"):
            bus.cancel(correlation_id)

        assert not bus.is_cancelled("a")
        assert bus.is_cancelled("b")
        assert bus.is_cancelled("c")

    def test_recancelling_refreshes_an_id(self):
        bus = PipelineBus(max_cancelled_runs=2)

        bus.cancel("a")
        bus.cancel("b")
        bus.cancel("a")
        bus.cancel("c")

        assert bus.is_cancelled("a")
        assert not bus.is_cancelled("b")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        bus = PipelineBus(workers=3)
        assert not bus.is_running

        await bus.start()
        assert bus.is_running

        await bus.stop()
        assert not bus.is_running
