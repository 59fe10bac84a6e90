"""
DATA MODELS MODULE
==================

This file defines the Pydantic models used for API requests, responses,
stream events and the internal chat context. FastAPI uses these to validate
incoming JSON; the services use them to pass data between stages. Field names
are snake_case in Python and camelCase on the wire (serialize with by_alias=True).

MODELS:
  ChatType        - The five chat categories; each selects a system prompt.
  HistoryMessage  - One earlier message (role + content) sent by the client.
  ChatRequest     - Body of POST /api/chat and POST /api/chat-stream.
  ChatContext     - Resolved type, language, trimmed history and metadata for one request.
  ChatResponse    - Reply returned (inside the envelope) by POST /api/chat.
  ChunkEvent, CompleteEvent, ErrorEvent - The three stream event shapes.
  ApiEnvelope     - Uniform wrapper around every API result, success or failure.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.utils.time_info import iso_timestamp


class WireModel(BaseModel):
    """Base for models exchanged with clients: camelCase aliases, populate by either name."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


# ==============================================================================
# CHAT TYPES
# ==============================================================================

class ChatType(str, Enum):
    GENERAL = "general"
    TRANSLATION = "translation"
    CODE_REVIEW = "code_review"
    CREATIVE_WRITING = "creative_writing"
    TECHNICAL_SUPPORT = "technical_support"


# ==============================================================================
# REQUEST MODELS
# ==============================================================================

class HistoryMessage(WireModel):
    """
    A single earlier message in the conversation, as sent by the client.
    Order in the list defines chronology; the server never reorders it.
    """
    role: str       # "user" or "assistant"; other roles are ignored by the prompt composer.
    content: str


class RequestContext(WireModel):
    """Optional conversation context attached to a ChatRequest."""
    previous_messages: List[HistoryMessage] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ChatRequest(WireModel):
    """
    Request body for POST /api/chat and POST /api/chat-stream.

    - comment: Required. The user's text. Empty or whitespace-only is rejected with 400
      before any model call (checked by the chat service, not here, so the error
      comes back inside the standard envelope).
    - type: Optional chat type name. Unknown names fall back to "general";
      if omitted, the type is detected from the comment.
    - language: Optional target language for translation.
    - context: Optional history and metadata.
    - streaming: Informational; the endpoint decides streaming.
    """
    comment: str = ""
    type: Optional[str] = None
    language: Optional[str] = None
    context: Optional[RequestContext] = None
    streaming: bool = False


class ChatContext(BaseModel):
    """Everything the prompt composer needs, derived from one ChatRequest."""
    chat_type: ChatType
    language: Optional[str] = None
    history: List[HistoryMessage] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


# ==============================================================================
# RESPONSE MODELS
# ==============================================================================

class ModelInfo(WireModel):
    """Describes the configured chat model; echoed in response metadata."""
    base_url: str
    model: str
    temperature: float
    max_tokens: int
    streaming: bool


class ResponseMetadata(WireModel):
    model_info: Optional[ModelInfo] = None
    detected_type: Optional[ChatType] = None
    processing_time: Optional[int] = None  # milliseconds


class ChatResponse(WireModel):
    """The assistant's reply. Produced exactly once per request, streamed or not."""
    content: str
    type: ChatType
    timestamp: str = Field(default_factory=iso_timestamp)
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


# ==============================================================================
# STREAM EVENTS
# ==============================================================================
# One JSON object per line on the wire. Zero or more chunks, then exactly one
# complete or error event.

class ChunkEvent(WireModel):
    type: Literal["chunk"] = "chunk"
    content: str                 # The new delta.
    full_content: str            # Everything generated so far.
    timestamp: str = Field(default_factory=iso_timestamp)


class CompleteEvent(WireModel):
    type: Literal["complete"] = "complete"
    content: str                 # Final full text; authoritative over the chunks.
    timestamp: str = Field(default_factory=iso_timestamp)
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class ErrorEvent(WireModel):
    type: Literal["error"] = "error"
    error: str
    timestamp: str = Field(default_factory=iso_timestamp)


StreamEvent = Union[ChunkEvent, CompleteEvent, ErrorEvent]

TERMINAL_EVENT_TYPES = ("complete", "error")


# ==============================================================================
# ENVELOPE
# ==============================================================================

class ApiErrorDetail(WireModel):
    field: Optional[str] = None
    message: str
    code: Optional[str] = None


class ApiEnvelope(WireModel):
    """
    Uniform wrapper for every API result. On success `data` is set and `errors`
    is absent; on failure `data` is absent and `code` is a 4xx/5xx status.
    """
    code: int
    data: Optional[Any] = None
    message: str
    errors: Optional[List[ApiErrorDetail]] = None
    timestamp: str = Field(default_factory=iso_timestamp)
    request_id: str

    @property
    def ok(self) -> bool:
        return 200 <= self.code < 300

    def to_wire(self) -> dict:
        """Serialize with camelCase keys, dropping data/errors when not set."""
        payload = self.model_dump(mode="json", by_alias=True)
        if self.data is None:
            payload.pop("data", None)
        if self.errors is None:
            payload.pop("errors", None)
        return payload
