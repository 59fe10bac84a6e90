"""
STREAM ENCODER
==============

Frames chat events as newline-delimited JSON for POST /api/chat-stream:

  {"type":"chunk","content":"He","fullContent":"He","timestamp":"..."}
  {"type":"chunk","content":"llo","fullContent":"Hello","timestamp":"..."}
  {"type":"complete","content":"Hello!","timestamp":"...","metadata":{...}}

encode_stream guarantees exactly one terminal event (complete or error) and
nothing after it, even if the event source misbehaves. Each line is yielded on
its own so the response flushes it immediately.
"""

import logging
from typing import AsyncIterator

from app.errors import ChatError
from app.models import ErrorEvent, StreamEvent, TERMINAL_EVENT_TYPES
from config import SERVICE_UNAVAILABLE_MESSAGE

logger = logging.getLogger("LangChat")

STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def encode_event(event: StreamEvent) -> str:
    """One event as a single JSON line (non-ASCII kept as UTF-8)."""
    return event.model_dump_json(by_alias=True) + "\n"


async def encode_stream(events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
    """Encode events until the first terminal one; supply an error terminal if none comes."""
    try:
        async for event in events:
            yield encode_event(event)
            if event.type in TERMINAL_EVENT_TYPES:
                return
        logger.error("Event source ended without a terminal event")
        yield encode_event(ErrorEvent(error=SERVICE_UNAVAILABLE_MESSAGE))
    except ChatError as e:
        yield encode_event(ErrorEvent(error=e.message))
    except Exception as e:
        # Headers are already sent; the only way to report is an error line.
        logger.error("Stream failed after it started: %r", e, exc_info=True)
        yield encode_event(ErrorEvent(error=SERVICE_UNAVAILABLE_MESSAGE))
    finally:
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()
