"""
CLIENT CHAT STATE
=================

Holds what a chat front end renders: the message log (most recent first) and the
loading / streaming flags. send_message() is the only way a turn happens:

  1. the user message is added, any previous error cleared, is_loading set;
  2. streaming path: an empty assistant message is added and filled in as chunk
     events arrive; the complete event sets its final text;
  3. if the stream cannot be opened or breaks before its terminal event, the same
     text is sent to POST /api/chat and the reply is written into that message;
  4. whatever happens, is_loading / is_streaming / streaming_message_id are reset.

Calls are not queued: a second send_message while one is running simply
overwrites the flags.
"""

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from client.api import ChatApiClient
from client.errors import ChatClientError, TransportError
from client.stream_decoder import MessageAssembler, StreamDecoder
from config import CHAT_HISTORY_LIMIT, FALLBACK_REPLY, MAX_HISTORY_MESSAGES, MAX_MESSAGE_LENGTH

logger = logging.getLogger("LangChat.client")


class Message(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    content: str
    role: Literal["user", "assistant"]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class StreamOutcome(str, Enum):
    REGULAR = "regular"  # streaming was not requested
    STREAMED_OK = "streamed_ok"
    STREAMED_THEN_FELL_BACK = "streamed_then_fell_back"
    FAILED = "failed"


class StreamResult(BaseModel):
    outcome: StreamOutcome
    content: str = ""
    error: Optional[str] = None


class ChatState:
    def __init__(self, api: ChatApiClient, history_limit: int = MAX_HISTORY_MESSAGES,
                 max_messages: int = CHAT_HISTORY_LIMIT, max_length: int = MAX_MESSAGE_LENGTH):
        self.api = api
        self.history_limit = history_limit
        self.max_messages = max_messages
        self.max_length = max_length
        self.messages: List[Message] = []
        self.is_loading = False
        self.is_streaming = False
        self.error: Optional[str] = None
        self.streaming_message_id: Optional[str] = None

    # ------------------------------------------------------------------------------
    # MESSAGE LOG
    # ------------------------------------------------------------------------------

    def add_message(self, content: str, role: str, message_id: Optional[str] = None) -> str:
        message = Message(content=content, role=role)
        if message_id:
            message.id = message_id
        self.messages.insert(0, message)
        del self.messages[self.max_messages:]
        return message.id

    def update_message(self, message_id: str, content: str) -> None:
        for message in self.messages:
            if message.id == message_id:
                message.content = content
                return

    def get_message(self, message_id: str) -> Optional[Message]:
        return next((m for m in self.messages if m.id == message_id), None)

    def recent_history(self, exclude_id: Optional[str] = None) -> List[dict]:
        """Last history_limit non-empty messages, oldest first, for the request context."""
        history = [
            {"role": m.role, "content": m.content}
            for m in reversed(self.messages)
            if m.id != exclude_id and m.content.strip()
        ]
        return history[-self.history_limit:] if self.history_limit > 0 else []

    def clear_messages(self) -> None:
        self.messages = []
        self.streaming_message_id = None

    def clear_error(self) -> None:
        self.error = None

    def stop_streaming(self) -> None:
        """Stop reading the current stream. Generation on the server is not cancelled."""
        self.is_streaming = False
        self.streaming_message_id = None

    # ------------------------------------------------------------------------------
    # SENDING
    # ------------------------------------------------------------------------------

    def send_message(self, content: str, use_streaming: bool = True) -> StreamOutcome:
        """
        Run one chat turn. Returns how the reply arrived; raises ChatClientError
        (after setting self.error) when no reply could be obtained.
        """
        if not content.strip():
            raise ChatClientError("Message content must not be empty")
        if len(content) > self.max_length:
            raise ChatClientError(f"Message is too long (max {self.max_length} characters)")

        history = self.recent_history()
        user_id = self.add_message(content, "user")
        self.is_loading = True
        self.error = None

        try:
            if use_streaming:
                result = self.send_streaming_message(content, history)
                if result.outcome == StreamOutcome.FAILED:
                    raise ChatClientError(result.error or "Stream processing failed")
                return result.outcome
            self.send_regular_message(content, history)
            return StreamOutcome.REGULAR
        except ChatClientError as e:
            self.error = str(e)
            raise
        finally:
            logger.debug("Turn for message %s finished", user_id)
            self.is_loading = False
            self.is_streaming = False
            self.streaming_message_id = None

    def send_regular_message(self, content: str, history: Optional[List[dict]] = None,
                             message_id: Optional[str] = None) -> str:
        """POST /api/chat; write the reply into message_id (or a new assistant message)."""
        envelope = self.api.chat(content, history=history)
        if envelope.get("code") != 200:
            raise ChatClientError(envelope.get("message") or "Request failed")

        reply = (envelope.get("data") or {}).get("content") or ""
        if not reply.strip():
            reply = FALLBACK_REPLY
        if message_id and self.get_message(message_id) is not None:
            self.update_message(message_id, reply)
        else:
            message_id = self.add_message(reply, "assistant")
        return message_id

    def send_streaming_message(self, content: str, history: Optional[List[dict]] = None) -> StreamResult:
        """
        Stream the reply into a new assistant message. A transport failure before the
        terminal event falls back to send_regular_message for the same text.
        """
        self.is_streaming = True
        assistant_id = self.add_message("", "assistant")
        self.streaming_message_id = assistant_id

        decoder = StreamDecoder()
        assembler = MessageAssembler()

        try:
            for piece in self.api.stream_chat(content, history=history):
                for event in decoder.feed(piece):
                    self._apply(assembler, assistant_id, event)
                if assembler.done or not self.is_streaming:
                    break
            else:
                for event in decoder.flush():
                    self._apply(assembler, assistant_id, event)
                if not assembler.done:
                    raise TransportError("Stream ended before its final event")
        except TransportError as e:
            logger.warning("Streaming request failed, falling back to regular request: %s", e)
            try:
                self.send_regular_message(content, history, message_id=assistant_id)
            except ChatClientError:
                self._discard_if_empty(assistant_id)
                raise
            message = self.get_message(assistant_id)
            return StreamResult(
                outcome=StreamOutcome.STREAMED_THEN_FELL_BACK,
                content=message.content if message else "",
            )

        if assembler.error:
            self._discard_if_empty(assistant_id)
            return StreamResult(outcome=StreamOutcome.FAILED, content=assembler.content, error=assembler.error)

        final = assembler.content
        if not final.strip():
            final = FALLBACK_REPLY
            self.update_message(assistant_id, final)
        return StreamResult(outcome=StreamOutcome.STREAMED_OK, content=final)

    def _discard_if_empty(self, message_id: str) -> None:
        message = self.get_message(message_id)
        if message is not None and not message.content.strip():
            self.messages = [m for m in self.messages if m.id != message_id]

    def _apply(self, assembler: MessageAssembler, message_id: str, event: dict) -> None:
        if assembler.done:
            return
        assembler.apply(event)
        if event.get("type") in ("chunk", "complete"):
            self.update_message(message_id, assembler.content)
