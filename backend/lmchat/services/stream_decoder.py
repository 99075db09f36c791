"""
Incremental response decoder.

Runs one streamed reply through the full pipeline:

    transport fragments -> frames -> deltas -> classified deltas -> events

Each StreamDecoder owns its classifier, stats and emitter, so concurrent
sessions never share state.

Usage:
    decoder = StreamDecoder(include_reasoning=True)
    async for event in decoder.events(upstream_stream):
        yield event.to_ndjson()
"""

import logging
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import aclosing
from typing import Protocol

from lmchat.models.stream_types import ChatStreamEvent, SessionStats, StreamFrame
from lmchat.services.delta_extractor import extract_delta
from lmchat.services.frame_reader import read_frames
from lmchat.services.lm_studio_service import UpstreamError
from lmchat.services.segment_classifier import SegmentClassifier
from lmchat.services.session_emitter import EventSink, SessionEmitter
from lmchat.services.stats_accumulator import StatsAccumulator

logger = logging.getLogger(__name__)


class ChunkSource(Protocol):
    """A releasable stream of transport fragments"""

    def chunks(self) -> AsyncIterator[bytes | str]: ...

    async def aclose(self) -> None: ...


class StreamDecoder:
    """
    Decoder for a single streamed reply.

    Args:
        include_reasoning: Forward reasoning content to the consumer.
            Reasoning is still counted in the stats when this is False.
        clock: Millisecond clock, injectable for tests
        should_stop: Polled between frames; returning True ends the
            session early (user cancellation)
    """

    def __init__(
        self,
        include_reasoning: bool = True,
        clock: Callable[[], int] | None = None,
        should_stop: Callable[[], bool] | None = None,
    ):
        self.classifier = SegmentClassifier()
        self.accumulator = StatsAccumulator(clock)
        self.emitter = SessionEmitter(include_reasoning)
        self._should_stop = should_stop

    async def events(self, source: ChunkSource) -> AsyncGenerator[ChatStreamEvent, None]:
        """
        Decode the source and yield outward events in arrival order.

        The last event is always the single completed event, unless the
        consumer closes the generator first. The source is released on
        every exit path.
        """
        error = None
        try:
            try:
                async with aclosing(read_frames(source.chunks())) as frames:
                    async for frame in frames:
                        if self._should_stop is not None and self._should_stop():
                            logger.info("[StreamDecoder] Stop requested, ending session")
                            break

                        event = self._process_frame(frame)
                        if event is not None:
                            yield event
            except UpstreamError as e:
                logger.error(f"[StreamDecoder] Stream read failed: {e}")
                error = str(e)

            stats = self.accumulator.finalize()
            self._log_summary(stats)
            final_event = self.emitter.complete(stats, error=error)
            if final_event is not None:
                yield final_event
        finally:
            await source.aclose()

    async def run(self, source: ChunkSource, send: EventSink) -> SessionStats:
        """
        Decode the source, delivering events through a consumer callback.

        Delivery failures do not stop decoding; the finalized stats are
        returned either way.
        """
        async for event in self.events(source):
            await self.emitter.deliver(event, send)
        return self.accumulator.finalize()

    def _process_frame(self, frame: StreamFrame) -> ChatStreamEvent | None:
        delta = extract_delta(frame)
        if delta is None:
            return None

        if delta.terminal_reason is not None:
            self.accumulator.record_terminal_reason(delta.terminal_reason)

        classified = self.classifier.classify(delta.text)
        self.accumulator.record(classified)
        return self.emitter.emit(classified, self.accumulator.snapshot())

    def _log_summary(self, stats: SessionStats) -> None:
        logger.info(
            f"[StreamDecoder] Session complete: tokens={stats.total_token_count} "
            f"(thinking={stats.reasoning_token_count}, response={stats.answer_token_count}), "
            f"duration={stats.end_time - stats.start_time}ms, "
            f"stop_reason={stats.terminal_reason or 'none'}"
        )
