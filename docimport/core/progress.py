"""Progress delivery for import runs.

Sinks receive ImportProgressEvent objects synchronously and must not raise.
Two implementations:
- ProgressChannel: an asyncio.Queue the caller consumes as an async iterator.
- CallbackProgressSink: adapts a plain callable; its failures are logged and
  dropped so a broken listener never aborts an import.
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, Protocol

from docimport.pydantic_models.progress import ImportProgressEvent

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    def emit(self, event: ImportProgressEvent) -> None: ...


class NullProgressSink:
    """Discards every event."""

    def emit(self, event: ImportProgressEvent) -> None:
        return None


class CallbackProgressSink:
    """Forwards events to a callable, swallowing and logging its errors."""

    def __init__(self, callback: Callable[[ImportProgressEvent], object]):
        self.callback = callback

    def emit(self, event: ImportProgressEvent) -> None:
        try:
            self.callback(event)
        except Exception as e:
            logger.warning(f"Progress listener failed on '{event.step.value}': {type(e).__name__}: {e}")


_CLOSED = object()


class ProgressChannel:
    """Unbounded queue of progress events.

    Usage:
        channel = ProgressChannel()
        workflow = ImportWorkflow(strategy, ..., progress=channel)
        task = asyncio.create_task(workflow.run(files, user_id))
        async for event in channel.events():
            render(event)
        result = await task

    ImportWorkflow.run closes the channel when it finishes.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: ImportProgressEvent) -> None:
        if self._closed:
            logger.debug(f"Dropping progress event after close: {event.step.value}")
            return
        self._queue.put_nowait(event)

    def close(self) -> None:
        """Stop the event stream. Idempotent."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def drain(self) -> list[ImportProgressEvent]:
        """Take every queued event without waiting."""
        events = []
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if item is _CLOSED:
                # Keep the close marker for any iterator still waiting
                self._queue.put_nowait(_CLOSED)
                break
            events.append(item)
        return events

    async def events(self) -> AsyncIterator[ImportProgressEvent]:
        """Yield events until the channel is closed."""
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                self._queue.put_nowait(_CLOSED)
                return
            yield item


def emit_safely(sink: ProgressSink | None, event: ImportProgressEvent) -> None:
    """Deliver an event, logging instead of raising if the sink breaks its contract."""
    if sink is None:
        return
    try:
        sink.emit(event)
    except Exception as e:
        logger.warning(f"Progress sink failed on '{event.step.value}': {type(e).__name__}: {e}")
