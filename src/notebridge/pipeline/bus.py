"""In-process message bus for the pipeline stages.

Point-to-point delivery: every message type has exactly one registered
handler. Messages wait in a single mailbox and a fixed pool of worker tasks
dispatches them. A handler returns the messages it emits; the bus enqueues
them, so the only suspension point between stages is the handoff itself.

A handler failure is logged with the envelope metadata, recorded as a failed
run and otherwise contained: other runs keep flowing and nothing is retried.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict, deque
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import structlog

from notebridge.logging import get_logger
from notebridge.pipeline.models import FailedRun, PipelineMessage

log = get_logger("notebridge.pipeline.bus")

HandlerResult = PipelineMessage | Sequence[PipelineMessage] | None
Handler = Callable[[Any], Awaitable[HandlerResult]]

MAX_FAILED_RUNS = 1000
MAX_CANCELLED_RUNS = 1000


class UnroutableMessageError(Exception):
    """Raised when a message is sent that no handler is registered for."""


class HandlerAlreadyRegisteredError(Exception):
    """Raised when a second handler is registered for a message type."""


class EnvelopeMismatchError(Exception):
    """Raised when a handler emits a message with different envelope metadata."""


class PipelineBus:
    """Single-mailbox dispatcher with a pool of worker tasks."""

    def __init__(
        self,
        *,
        workers: int = 1,
        max_failed_runs: int = MAX_FAILED_RUNS,
        max_cancelled_runs: int = MAX_CANCELLED_RUNS,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self._workers = workers
        self._handlers: dict[type, Handler] = {}
        self._queue: asyncio.Queue[PipelineMessage] = asyncio.Queue()
        self._tasks: list[asyncio.Task[None]] = []
        # Oldest cancellations are forgotten first
        self._cancelled: OrderedDict[str, None] = OrderedDict()
        self._max_cancelled = max_cancelled_runs
        self._failed: deque[FailedRun] = deque(maxlen=max_failed_runs)

    def register(self, message_type: type, handler: Handler) -> None:
        """Register the single handler for ``message_type``."""
        if message_type in self._handlers:
            raise HandlerAlreadyRegisteredError(
                f"A handler for {message_type.__name__} is already registered"
            )
        self._handlers[message_type] = handler
        log.debug("handler_registered", message_type=message_type.__name__)

    def has_handler(self, message_type: type) -> bool:
        return message_type in self._handlers

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    @property
    def failed_runs(self) -> list[FailedRun]:
        """Runs abandoned after a handler error, oldest first."""
        return list(self._failed)

    def cancel(self, correlation_id: str) -> None:
        """Stop a run at its next stage boundary."""
        self._cancelled[correlation_id] = None
        self._cancelled.move_to_end(correlation_id)
        while len(self._cancelled) > self._max_cancelled:
            self._cancelled.popitem(last=False)
        log.info("run_cancel_requested", correlation_id=correlation_id)

    def is_cancelled(self, correlation_id: str) -> bool:
        return correlation_id in self._cancelled

    async def send(self, message: PipelineMessage) -> None:
        """Hand ``message`` to the bus for delivery to its handler."""
        if type(message) not in self._handlers:
            raise UnroutableMessageError(f"No handler registered for {type(message).__name__}")
        if self.is_cancelled(message.meta.correlation_id):
            log.info(
                "message_dropped_cancelled",
                message_type=type(message).__name__,
                **message.meta.log_fields(),
            )
            return
        await self._queue.put(message)

    async def start(self) -> None:
        """Start the worker pool."""
        if self.is_running:
            return
        self._tasks = [
            asyncio.create_task(self._worker(index), name=f"pipeline-worker-{index}")
            for index in range(self._workers)
        ]
        log.info("pipeline_bus_started", workers=self._workers)

    async def join(self) -> None:
        """Wait until every queued message, including fan-out, is handled."""
        await self._queue.join()

    async def stop(self) -> None:
        """Cancel the worker pool. Messages still queued are dropped."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        log.info("pipeline_bus_stopped", pending=self._queue.qsize())

    async def _worker(self, index: int) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self.dispatch(message)
            finally:
                self._queue.task_done()

    async def dispatch(self, message: PipelineMessage) -> None:
        """Deliver one message to its handler and enqueue what it emits."""
        meta = message.meta
        message_type = type(message).__name__

        # Cancellation is honoured at the stage boundary
        if self.is_cancelled(meta.correlation_id):
            log.info("message_dropped_cancelled", message_type=message_type, **meta.log_fields())
            return

        handler = self._handlers[type(message)]
        with structlog.contextvars.bound_contextvars(**meta.log_fields()):
            log.debug("handler_started", message_type=message_type)
            try:
                result = await handler(message)
                emitted = _as_list(result)
                # Check every emitted message before any of them is enqueued
                for child in emitted:
                    if child.meta != meta:
                        raise EnvelopeMismatchError(
                            f"{type(child).__name__} emitted by {message_type} "
                            "does not carry its parent's envelope metadata"
                        )
                for child in emitted:
                    await self.send(child)
            except Exception as e:
                log.exception(
                    "handler_failed",
                    message_type=message_type,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                self._failed.append(
                    FailedRun(
                        message_type=message_type,
                        meta=meta,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                )
                return
            log.debug("handler_completed", message_type=message_type)


def _as_list(result: HandlerResult) -> list[PipelineMessage]:
    if result is None:
        return []
    if isinstance(result, (list, tuple)):
        return list(result)
    return [result]  # type: ignore[list-item]
