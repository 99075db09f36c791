"""
Delta extraction from OpenAI-compatible streaming chunks.
"""

import json
import logging

from lmchat.models.stream_types import ContentDelta, StreamFrame

logger = logging.getLogger(__name__)


def extract_delta(frame: StreamFrame) -> ContentDelta | None:
    """
    Parse one frame payload into a content delta.

    A single bad frame must never end the session, so malformed payloads
    are logged and skipped rather than raised.

    Args:
        frame: JSON payload of a "data:" record

    Returns:
        ContentDelta, or None for malformed and keep-alive frames
    """
    try:
        payload = json.loads(frame)
    except json.JSONDecodeError as e:
        logger.warning(f"[DeltaExtractor] Dropping malformed frame: {e}")
        return None

    try:
        choice = payload["choices"][0]
    except (KeyError, IndexError, TypeError):
        logger.warning(f"[DeltaExtractor] Dropping frame without choices: {frame[:120]}")
        return None

    if not isinstance(choice, dict):
        logger.warning(f"[DeltaExtractor] Dropping frame with invalid choice: {choice!r}")
        return None

    delta = choice.get("delta") or {}
    text = delta.get("content") if isinstance(delta, dict) else None
    if text is None:
        text = ""
    elif not isinstance(text, str):
        logger.warning(f"[DeltaExtractor] Ignoring non-text content: {type(text).__name__}")
        text = ""

    terminal_reason = choice.get("finish_reason") or None
    if terminal_reason is not None and not isinstance(terminal_reason, str):
        logger.warning(
            f"[DeltaExtractor] Ignoring non-text finish_reason: {type(terminal_reason).__name__}"
        )
        terminal_reason = None

    if not text and terminal_reason is None:
        # Keep-alive frame
        return None

    return ContentDelta(text=text, terminal_reason=terminal_reason)
