"""
LANGCHAT CLIENT PACKAGE
=======================

Python client for the LangChat API; the counterpart of a browser front end.

  api.py            - ChatApiClient: POST /api/chat and /api/chat-stream over requests.
  stream_decoder.py - StreamDecoder (bytes -> events) and MessageAssembler (events -> text).
  chat_state.py     - ChatState: message log, loading/streaming flags, send_message with fallback.
  errors.py         - ChatClientError, TransportError, StreamParseError.
"""

from client.api import ChatApiClient
from client.chat_state import ChatState, Message, StreamOutcome, StreamResult
from client.errors import ChatClientError, StreamParseError, TransportError
from client.stream_decoder import MessageAssembler, StreamDecoder

__all__ = [
    "ChatApiClient",
    "ChatState",
    "Message",
    "StreamOutcome",
    "StreamResult",
    "ChatClientError",
    "StreamParseError",
    "TransportError",
    "MessageAssembler",
    "StreamDecoder",
]
