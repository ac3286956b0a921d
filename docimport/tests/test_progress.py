"""Tests for docimport.core.progress module.

Tests progress delivery:
- ProgressChannel queueing, draining, async iteration and close
- CallbackProgressSink failure isolation
- emit_safely with misbehaving sinks
"""

import asyncio

import pytest

from docimport.core.progress import CallbackProgressSink, NullProgressSink, ProgressChannel, emit_safely
from docimport.pydantic_models import ImportProgressEvent, ImportProgressStep


def event(step=ImportProgressStep.PARSING, message="Parsing with AI...", progress=0.25):
    return ImportProgressEvent(step=step, message=message, progress=progress)


class TestProgressChannel:
    """Tests for ProgressChannel."""

    def test_drain_returns_events_in_order(self):
        channel = ProgressChannel()
        channel.emit(event(ImportProgressStep.VALIDATING))
        channel.emit(event(ImportProgressStep.PARSING))
        assert [e.step for e in channel.drain()] == [ImportProgressStep.VALIDATING, ImportProgressStep.PARSING]
        assert channel.drain() == []

    def test_emit_after_close_is_dropped(self):
        channel = ProgressChannel()
        channel.close()
        channel.emit(event())
        assert channel.closed
        assert channel.drain() == []

    def test_close_is_idempotent(self):
        channel = ProgressChannel()
        channel.close()
        channel.close()
        assert channel.drain() == []

    @pytest.mark.asyncio
    async def test_async_iteration_until_close(self):
        channel = ProgressChannel()

        async def producer():
            for step in (ImportProgressStep.VALIDATING, ImportProgressStep.COMPLETED):
                channel.emit(event(step))
                await asyncio.sleep(0)
            channel.close()

        task = asyncio.create_task(producer())
        received = [e.step async for e in channel.events()]
        await task
        assert received == [ImportProgressStep.VALIDATING, ImportProgressStep.COMPLETED]

    @pytest.mark.asyncio
    async def test_iteration_after_close_ends(self):
        channel = ProgressChannel()
        channel.emit(event())
        channel.close()
        assert len([e async for e in channel.events()]) == 1
        assert [e async for e in channel.events()] == []


class TestSinks:
    """Tests for callback and null sinks."""

    def test_callback_receives_events(self):
        received = []
        CallbackProgressSink(received.append).emit(event())
        assert received[0].message == "Parsing with AI..."

    def test_callback_failure_is_swallowed(self, caplog):
        def broken(_):
            raise RuntimeError("socket closed")

        CallbackProgressSink(broken).emit(event())
        assert "socket closed" in caplog.text

    def test_null_sink(self):
        assert NullProgressSink().emit(event()) is None

    def test_emit_safely_guards_any_sink(self):
        class BadSink:
            def emit(self, e):
                raise ValueError("bad")

        emit_safely(BadSink(), event())
        emit_safely(None, event())
