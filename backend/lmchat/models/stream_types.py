"""
Type definitions for the incremental response decoder.

Covers every value that flows through the decode pipeline:
frames -> deltas -> classified deltas -> outward events.
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

# One transport-level record: the payload after the "data:" prefix
StreamFrame = str


@dataclass(frozen=True)
class ContentDelta:
    """Content fragment extracted from one stream frame"""

    text: str
    terminal_reason: str | None = None


@dataclass(frozen=True)
class ClassifiedDelta:
    """
    A delta with reasoning markers stripped and its segment label attached.

    Fields:
        text: Delta text with every marker removed
        is_reasoning: Whether the delta belongs to a reasoning segment
        opened_reasoning: This delta moved the stream into a reasoning segment
        closed_reasoning: This delta moved the stream out of a reasoning segment
    """

    text: str
    is_reasoning: bool
    opened_reasoning: bool = False
    closed_reasoning: bool = False


class SessionStats(BaseModel):
    """
    Timing and counting state for one in-flight response.

    Times are epoch milliseconds, 0 means "not set yet". Serialised with
    the camelCase keys the chat UI reads.
    """

    model_config = ConfigDict(populate_by_name=True)

    start_time: int = Field(0, alias="startTime")
    first_token_time: int = Field(0, alias="firstTokenTime")
    first_answer_token_time: int = Field(0, alias="firstResponseTokenTime")
    end_time: int = Field(0, alias="endTime")
    reasoning_start_time: int = Field(0, alias="thinkingStartTime")
    reasoning_end_time: int = Field(0, alias="thinkingEndTime")
    total_token_count: int = Field(0, alias="totalTokens")
    reasoning_token_count: int = Field(0, alias="thinkingTokens")
    answer_token_count: int = Field(0, alias="responseTokens")
    terminal_reason: str = Field("", alias="stopReason")


class ChatStreamEvent(BaseModel):
    """One NDJSON record sent to the chat UI"""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    is_thinking: bool = Field(False, alias="isThinking")
    stats: SessionStats
    completed: bool = False
    error: str | None = None

    def to_ndjson(self) -> str:
        """Serialise as a single newline-terminated JSON line."""
        return self.model_dump_json(by_alias=True, exclude_none=True) + "\n"
