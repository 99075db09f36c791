"""
Latency and throughput statistics for a streamed reply.

One delta counts as one token. This mirrors the upstream protocol's delta
granularity and is not real tokenization.
"""

import logging
import time
from collections.abc import Callable

from lmchat.models.stream_types import ClassifiedDelta, SessionStats

logger = logging.getLogger(__name__)


class SessionClock:
    """Epoch milliseconds that never run backwards within a session."""

    def __init__(self):
        self._origin_ms = int(time.time() * 1000)
        self._origin = time.monotonic()

    def __call__(self) -> int:
        return self._origin_ms + int((time.monotonic() - self._origin) * 1000)


class StatsAccumulator:
    """
    Maintains SessionStats for one response.

    Invariants:
    - total_token_count == reasoning_token_count + answer_token_count
    - first_token_time and first_answer_token_time are set at most once
    - end_time is set once, by finalize()
    """

    def __init__(self, clock: Callable[[], int] | None = None):
        self._clock = clock or SessionClock()
        self.stats = SessionStats(start_time=self._clock())
        self.finalized = False

    def record(self, delta: ClassifiedDelta) -> None:
        """
        Update counters and timestamps for one classified delta.

        Args:
            delta: Delta produced by the segment classifier
        """
        if delta.opened_reasoning:
            self.stats.reasoning_start_time = self._clock()

        if delta.text:
            now = self._clock()
            if self.stats.first_token_time == 0:
                self.stats.first_token_time = now

            self.stats.total_token_count += 1
            if delta.is_reasoning:
                self.stats.reasoning_token_count += 1
            else:
                self.stats.answer_token_count += 1
                if self.stats.first_answer_token_time == 0:
                    self.stats.first_answer_token_time = now

        if delta.closed_reasoning:
            self.stats.reasoning_end_time = self._clock()

    def record_terminal_reason(self, reason: str) -> None:
        self.stats.terminal_reason = reason

    def finalize(self) -> SessionStats:
        """
        Stamp the end time and return the final snapshot.

        Safe to call more than once; only the first call sets end_time.
        """
        if not self.finalized:
            self.stats.end_time = self._clock()
            self.finalized = True
        return self.snapshot()

    def snapshot(self) -> SessionStats:
        """Independent copy of the current stats."""
        return self.stats.model_copy()
