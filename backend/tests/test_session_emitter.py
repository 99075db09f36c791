"""Tests for SessionEmitter."""

import json

import pytest

from lmchat.models.stream_types import ClassifiedDelta, SessionStats
from lmchat.services.session_emitter import ConsumerClosedError, SessionEmitter


def _stats() -> SessionStats:
    return SessionStats(start_time=1_000)


class TestSessionEmitter:
    """Tests for event construction."""

    def test_answer_event(self) -> None:
        emitter = SessionEmitter()

        event = emitter.emit(ClassifiedDelta(text="Hi", is_reasoning=False), _stats())

        assert event.content == "Hi"
        assert event.is_thinking is False
        assert event.completed is False

    def test_reasoning_event_when_included(self) -> None:
        emitter = SessionEmitter(include_reasoning=True)

        event = emitter.emit(ClassifiedDelta(text="hmm", is_reasoning=True), _stats())

        assert event.is_thinking is True

    def test_reasoning_suppressed_when_excluded(self) -> None:
        emitter = SessionEmitter(include_reasoning=False)

        assert emitter.emit(ClassifiedDelta(text="hmm", is_reasoning=True), _stats()) is None
        assert emitter.emit(ClassifiedDelta(text="ok", is_reasoning=False), _stats()) is not None

    def test_empty_text_is_not_emitted(self) -> None:
        emitter = SessionEmitter()

        assert emitter.emit(ClassifiedDelta(text="", is_reasoning=True), _stats()) is None

    def test_single_completion(self) -> None:
        """Test exactly one completed event, and nothing after it"""
        emitter = SessionEmitter()

        final = emitter.complete(_stats())

        assert final.completed is True
        assert final.content == ""
        assert final.is_thinking is False
        assert emitter.complete(_stats()) is None
        assert emitter.emit(ClassifiedDelta(text="late", is_reasoning=False), _stats()) is None

    def test_ndjson_shape(self) -> None:
        emitter = SessionEmitter()
        event = emitter.emit(ClassifiedDelta(text="Hi", is_reasoning=False), _stats())

        line = event.to_ndjson()
        data = json.loads(line)

        assert line.endswith("\n")
        assert set(data) == {"content", "isThinking", "stats", "completed"}
        assert data["stats"]["startTime"] == 1_000

    def test_error_included_only_when_set(self) -> None:
        emitter = SessionEmitter()

        data = json.loads(emitter.complete(_stats(), error="Stream interrupted").to_ndjson())

        assert data["error"] == "Stream interrupted"
        assert data["completed"] is True


class TestDelivery:
    """Tests for delivery to a consumer callback."""

    @pytest.mark.asyncio
    async def test_deliver_to_open_consumer(self) -> None:
        emitter = SessionEmitter()
        received = []

        async def send(event):
            received.append(event)

        event = emitter.complete(_stats())
        assert await emitter.deliver(event, send) is True
        assert received == [event]

    @pytest.mark.asyncio
    async def test_closed_consumer_suppresses_further_events(self) -> None:
        emitter = SessionEmitter()
        calls = []

        async def send(event):
            calls.append(event)
            raise ConsumerClosedError("client went away")

        event = emitter.emit(ClassifiedDelta(text="a", is_reasoning=False), _stats())

        assert await emitter.deliver(event, send) is False
        assert await emitter.deliver(event, send) is False
        assert len(calls) == 1
        assert emitter.consumer_closed is True

    @pytest.mark.asyncio
    async def test_broken_pipe_counts_as_closed(self) -> None:
        emitter = SessionEmitter()

        async def send(event):
            raise BrokenPipeError()

        event = emitter.complete(_stats())

        assert await emitter.deliver(event, send) is False
        assert emitter.consumer_closed is True
