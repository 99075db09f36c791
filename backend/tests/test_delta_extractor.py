"""Unit tests for extract_delta."""

import json

from lmchat.models.stream_types import ContentDelta
from lmchat.services.delta_extractor import extract_delta


def _frame(choice: dict) -> str:
    return json.dumps({"id": "chatcmpl-1", "choices": [choice]})


def test_content_delta():
    frame = _frame({"delta": {"content": "Hello"}, "finish_reason": None})

    assert extract_delta(frame) == ContentDelta(text="Hello", terminal_reason=None)


def test_finish_reason_without_content():
    """Test a terminal frame carrying only a finish reason"""
    frame = _frame({"delta": {}, "finish_reason": "stop"})

    assert extract_delta(frame) == ContentDelta(text="", terminal_reason="stop")


def test_content_and_finish_reason_together():
    frame = _frame({"delta": {"content": "!"}, "finish_reason": "length"})

    delta = extract_delta(frame)

    assert delta.text == "!"
    assert delta.terminal_reason == "length"


def test_keep_alive_frame_returns_none():
    """Test empty content with no finish reason has no effect"""
    assert extract_delta(_frame({"delta": {"content": ""}, "finish_reason": None})) is None
    assert extract_delta(_frame({"delta": {"role": "assistant"}})) is None


def test_null_content_is_treated_as_empty():
    frame = _frame({"delta": {"content": None}, "finish_reason": "stop"})

    assert extract_delta(frame) == ContentDelta(text="", terminal_reason="stop")


def test_malformed_json_returns_none(caplog):
    """Test a broken frame is reported and skipped, not raised"""
    assert extract_delta('{"choices": [{"delta": ') is None
    assert "malformed frame" in caplog.text


def test_missing_or_empty_choices_returns_none():
    assert extract_delta(json.dumps({"object": "chat.completion.chunk"})) is None
    assert extract_delta(json.dumps({"choices": []})) is None
    assert extract_delta(json.dumps(["not", "an", "object"])) is None
    assert extract_delta(json.dumps({"choices": ["text"]})) is None


def test_non_text_content_is_ignored():
    frame = _frame({"delta": {"content": [{"type": "text"}]}, "finish_reason": None})

    assert extract_delta(frame) is None


def test_non_text_finish_reason_is_ignored(caplog):
    """Test only string stop reasons reach the stats"""
    with_text = _frame({"delta": {"content": "ok"}, "finish_reason": {"type": "stop"}})
    without_text = _frame({"delta": {}, "finish_reason": 1})

    assert extract_delta(with_text) == ContentDelta(text="ok", terminal_reason=None)
    assert extract_delta(without_text) is None
    assert "non-text finish_reason" in caplog.text
