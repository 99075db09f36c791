"""
Session emitter: packages classified deltas into outward chat events.
"""

import logging
from collections.abc import Awaitable, Callable

from lmchat.models.stream_types import ChatStreamEvent, ClassifiedDelta, SessionStats

logger = logging.getLogger(__name__)

EventSink = Callable[[ChatStreamEvent], Awaitable[None]]


class ConsumerClosedError(Exception):
    """Raised by a sink whose consumer has gone away"""


class SessionEmitter:
    """
    Builds the outward events of one session.

    Guarantees:
    - exactly one completed event, and nothing after it
    - reasoning content is withheld when include_reasoning is False
    - once delivery to the consumer fails, later deliveries are dropped
    """

    def __init__(self, include_reasoning: bool = True):
        self.include_reasoning = include_reasoning
        self.completed = False
        self.consumer_closed = False

    def emit(self, delta: ClassifiedDelta, stats: SessionStats) -> ChatStreamEvent | None:
        """
        Wrap a classified delta and a stats snapshot into an event.

        Returns:
            The event, or None when there is nothing to forward
        """
        if self.completed:
            logger.warning("[SessionEmitter] Ignoring delta after completion")
            return None

        if not delta.text:
            return None

        if delta.is_reasoning and not self.include_reasoning:
            return None

        return ChatStreamEvent(
            content=delta.text,
            is_thinking=delta.is_reasoning,
            stats=stats,
            completed=False,
        )

    def complete(
        self, stats: SessionStats, error: str | None = None
    ) -> ChatStreamEvent | None:
        """Build the terminal event; None if the session already completed."""
        if self.completed:
            return None

        self.completed = True
        return ChatStreamEvent(
            content="",
            is_thinking=False,
            stats=stats,
            completed=True,
            error=error,
        )

    async def deliver(self, event: ChatStreamEvent, send: EventSink) -> bool:
        """
        Hand an event to the consumer.

        Args:
            event: Event to deliver
            send: Consumer callback

        Returns:
            True if the consumer accepted the event
        """
        if self.consumer_closed:
            return False

        try:
            await send(event)
            return True
        except (ConsumerClosedError, ConnectionError) as e:
            logger.warning(
                f"[SessionEmitter] Consumer closed, suppressing further events: {e}"
            )
            self.consumer_closed = True
            return False
