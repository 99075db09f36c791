"""
Segment classifier for reasoning ("thinking") output.

Labels each delta of a streamed reply as reasoning or answer content and
strips the <think>/</think> markers from it.

Model Assumptions:
- Markers arrive whole inside a single delta. A marker split across two
  deltas is not recognised; there is no look-ahead across deltas.
- A delta containing a marker is classified as a whole; mixed deltas are
  not split around the marker.
- A segment that never closes stays open until the stream ends.
"""

import logging
import re
from enum import Enum

from lmchat.models.stream_types import ClassifiedDelta

logger = logging.getLogger(__name__)

THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"


class SegmentState(Enum):
    """Classifier state machine states"""

    ANSWERING = "answering"
    REASONING = "reasoning"


class SegmentClassifier:
    """
    Per-session reasoning/answer state machine.

    Transition rules, checked against the raw delta text:
    - open marker while ANSWERING: enter REASONING; the delta is reasoning
    - close marker while REASONING: the delta is still reasoning, then
      return to ANSWERING
    - otherwise the current state decides

    Usage:
        classifier = SegmentClassifier()
        for text in deltas:
            classified = classifier.classify(text)
    """

    def __init__(self, open_marker: str = THINK_OPEN, close_marker: str = THINK_CLOSE):
        self.open_marker = open_marker
        self.close_marker = close_marker
        self._marker_pattern = re.compile(
            f"{re.escape(open_marker)}|{re.escape(close_marker)}"
        )
        self.state = SegmentState.ANSWERING

    @property
    def inside_reasoning(self) -> bool:
        return self.state is SegmentState.REASONING

    def classify(self, text: str) -> ClassifiedDelta:
        """
        Classify one delta and advance the state machine.

        Args:
            text: Raw delta text, markers included

        Returns:
            ClassifiedDelta with markers stripped and transition flags set
        """
        is_reasoning = self.inside_reasoning
        opened = False
        closed = False

        if self.open_marker in text:
            if not self.inside_reasoning:
                opened = True
                logger.debug("[SegmentClassifier] Entering reasoning segment")
            self.state = SegmentState.REASONING
            is_reasoning = True

        if self.close_marker in text and self.inside_reasoning:
            closed = True
            self.state = SegmentState.ANSWERING
            logger.debug("[SegmentClassifier] Leaving reasoning segment")

        return ClassifiedDelta(
            text=self.strip_markers(text),
            is_reasoning=is_reasoning,
            opened_reasoning=opened,
            closed_reasoning=closed,
        )

    def strip_markers(self, text: str) -> str:
        """Remove every marker occurrence, wherever it sits in the text."""
        return self._marker_pattern.sub("", text)
