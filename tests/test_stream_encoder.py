import asyncio
import json

from app.errors import ServiceUnavailableError
from app.models import ChunkEvent, CompleteEvent, ErrorEvent
from app.services.stream_encoder import encode_event, encode_stream
from config import SERVICE_UNAVAILABLE_MESSAGE


async def _lines(events):
    return [line async for line in encode_stream(events)]


async def _source(*events, raise_after=None):
    for event in events:
        yield event
    if raise_after is not None:
        raise raise_after


def test_chunk_line_shape():
    line = encode_event(ChunkEvent(content="你", full_content="你好"))

    assert line.endswith("\n") and line.count("\n") == 1
    payload = json.loads(line)
    assert payload["type"] == "chunk"
    assert payload["content"] == "你"
    assert payload["fullContent"] == "你好"
    assert payload["timestamp"].endswith("Z")
    assert "你好" in line  # not \u-escaped


def test_error_line_shape():
    payload = json.loads(encode_event(ErrorEvent(error="boom")))
    assert set(payload) == {"type", "error", "timestamp"}


def test_nothing_after_terminal_event():
    source = _source(
        ChunkEvent(content="a", full_content="a"),
        CompleteEvent(content="a"),
        ChunkEvent(content="late", full_content="alate"),
    )

    lines = asyncio.run(_lines(source))

    assert [json.loads(line)["type"] for line in lines] == ["chunk", "complete"]


def test_missing_terminal_event_is_supplied():
    lines = asyncio.run(_lines(_source(ChunkEvent(content="a", full_content="a"))))

    last = json.loads(lines[-1])
    assert len(lines) == 2
    assert last["type"] == "error"
    assert last["error"] == SERVICE_UNAVAILABLE_MESSAGE


def test_source_exception_becomes_sanitized_error_line():
    source = _source(ChunkEvent(content="a", full_content="a"), raise_after=RuntimeError("db password=hunter2"))

    lines = asyncio.run(_lines(source))

    assert len(lines) == 2
    last = json.loads(lines[-1])
    assert last["type"] == "error"
    assert "hunter2" not in last["error"]


def test_chat_error_message_passes_through():
    source = _source(raise_after=ServiceUnavailableError("Model is warming up"))

    lines = asyncio.run(_lines(source))

    assert json.loads(lines[0])["error"] == "Model is warming up"
