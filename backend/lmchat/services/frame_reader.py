"""
Frame reader for server-sent event streams.

Turns raw transport fragments into "data:" payloads. Fragments arrive at
arbitrary boundaries, so a partial trailing line is buffered until the
rest of it shows up.
"""

import codecs
import logging
from collections.abc import AsyncGenerator, AsyncIterable

from lmchat.models.stream_types import StreamFrame

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class FrameReader:
    """
    Incremental line splitter for SSE "data:" records.

    Handles:
    - Lines split across fragments
    - Multi-byte UTF-8 characters split across byte fragments
    - CRLF line endings
    - The [DONE] end-of-stream record (dropped)

    Usage:
        reader = FrameReader()
        for fragment in fragments:
            for frame in reader.feed(fragment):
                ...
        for frame in reader.flush():
            ...
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, fragment: bytes | str) -> list[StreamFrame]:
        """
        Add a fragment and return every frame it completed.

        Args:
            fragment: Raw bytes or already-decoded text from the transport

        Returns:
            Payloads of the complete data records, in order
        """
        if isinstance(fragment, bytes):
            fragment = self._decoder.decode(fragment)

        self._buffer += fragment
        *lines, self._buffer = self._buffer.split("\n")
        return self._parse_lines(lines)

    def flush(self) -> list[StreamFrame]:
        """Parse whatever is left once the input is exhausted."""
        remainder = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._parse_lines([remainder])

    def _parse_lines(self, lines: list[str]) -> list[StreamFrame]:
        frames = []
        for line in lines:
            line = line.rstrip("\r")
            if not line:
                continue

            if not line.startswith(DATA_PREFIX):
                logger.debug(f"[FrameReader] Skipping non-data line: {line[:80]!r}")
                continue

            payload = line[len(DATA_PREFIX) :]
            if payload.startswith(" "):
                payload = payload[1:]

            if payload.strip() == DONE_SENTINEL:
                continue

            frames.append(payload)
        return frames


async def read_frames(
    fragments: AsyncIterable[bytes | str],
) -> AsyncGenerator[StreamFrame, None]:
    """
    Lazily yield frames from an async stream of transport fragments.

    Args:
        fragments: Byte or text chunks in arrival order

    Yields:
        Frame payloads in arrival order
    """
    reader = FrameReader()
    async for fragment in fragments:
        for frame in reader.feed(fragment):
            yield frame

    for frame in reader.flush():
        yield frame
