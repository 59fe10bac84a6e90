"""
STREAM DECODER
==============

Client half of the chat-stream protocol. Bytes arrive in arbitrary pieces;
StreamDecoder turns them into event dicts and MessageAssembler turns the events
into the assistant's message text.

  decoder = StreamDecoder()
  assembler = MessageAssembler()
  for piece in response_bytes:
      for event in decoder.feed(piece):
          assembler.apply(event)
  for event in decoder.flush():
      assembler.apply(event)

Lines are split on b"\\n" before UTF-8 decoding, so a multi-byte character cut
across two reads is reassembled. The result does not depend on where the byte
stream was cut.
"""

import json
import logging
from typing import List, Optional

from client.errors import StreamParseError

logger = logging.getLogger("LangChat.client")


class StreamDecoder:
    """Splits a byte stream into JSON events, holding a partial last line between feeds."""

    def __init__(self):
        self._buffer = b""

    def feed(self, data: bytes) -> List[dict]:
        """Add bytes; return the events of every line completed by them."""
        self._buffer += data
        *lines, self._buffer = self._buffer.split(b"\n")
        return self._parse_lines(lines)

    def flush(self) -> List[dict]:
        """End of stream: parse whatever is left in the buffer as a final line."""
        rest, self._buffer = self._buffer, b""
        return self._parse_lines([rest])

    def _parse_lines(self, lines: List[bytes]) -> List[dict]:
        events = []
        for raw in lines:
            if not raw.strip():
                continue
            try:
                events.append(parse_line(raw))
            except StreamParseError as e:
                logger.warning("Skipping stream line: %s", e)
        return events


def parse_line(raw: bytes) -> dict:
    """Decode one line into an event dict. Raises StreamParseError if it is not a JSON object."""
    try:
        event = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StreamParseError(f"{e} (raw line: {raw[:200]!r})") from e
    if not isinstance(event, dict):
        raise StreamParseError(f"expected a JSON object, got {type(event).__name__}")
    return event


class MessageAssembler:
    """
    Rebuilds the assistant message from events.

    chunk    -> content becomes fullContent when present, else content is appended.
    complete -> content is replaced by the event's content (authoritative); done.
    error    -> error is recorded; done. The caller stops reading.
    """

    def __init__(self):
        self.content = ""
        self.done = False
        self.error: Optional[str] = None
        self.metadata: Optional[dict] = None

    def apply(self, event: dict) -> bool:
        """Apply one event. Returns True once a terminal event has been seen."""
        if self.done:
            return True

        event_type = event.get("type")
        if event_type == "chunk":
            full = event.get("fullContent")
            if full:
                self.content = full
            else:
                self.content += event.get("content") or ""
        elif event_type == "complete":
            self.content = event.get("content") or ""
            self.metadata = event.get("metadata")
            self.done = True
            logger.debug("Stream complete: %s", self.metadata)
        elif event_type == "error":
            self.error = event.get("error") or "Stream processing failed"
            self.done = True
        else:
            logger.warning("Unknown stream event type: %r", event_type)
        return self.done
