"""
CHAT SERVICE MODULE
===================

Turns a ChatRequest into a reply. Used by the API layer (app.main); knows nothing
about HTTP. One instance is built at startup and shared by all requests.

FLOW (both paths):
  1. validate: empty / whitespace comment -> ValidationError, no model call.
  2. build_context: resolve chat type (explicit or detected), target language,
     last MAX_HISTORY_MESSAGES history entries, request metadata.
  3. compose_messages: system prompt + history + current input.
  4. complete (reply) or complete_streaming (stream_reply).

stream_reply runs the streamed completion as a task that pushes ChunkEvents onto
a queue; the async generator drains the queue and finishes with exactly one
CompleteEvent or ErrorEvent. Closing the generator early cancels the task.
"""

import asyncio
import logging
import time
from typing import AsyncIterator, List

from app.errors import ChatError, ValidationError
from app.models import (
    ChatContext,
    ChatRequest,
    ChatResponse,
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    ModelInfo,
    ResponseMetadata,
    StreamEvent,
)
from app.services.classifier import resolve_chat_type
from app.services.completion_service import CompletionService
from app.services.prompt_composer import compose_messages, trim_history
from app.utils.time_info import iso_timestamp
from config import APP_NAME, SERVICE_UNAVAILABLE_MESSAGE

logger = logging.getLogger("LangChat")

# Marks the end of the streamed completion on the event queue.
_STREAM_DONE = object()


class ChatService:
    """Classifies, composes and completes chat requests."""

    def __init__(self, completion_service: CompletionService):
        self.completion = completion_service

    def model_info(self) -> ModelInfo:
        return self.completion.model_info()

    # ------------------------------------------------------------------------------
    # CONTEXT
    # ------------------------------------------------------------------------------

    def validate(self, request: ChatRequest) -> None:
        if not request.comment or not request.comment.strip():
            raise ValidationError(
                "Request parameters must not be empty",
                errors=[{"field": "comment", "message": "must not be empty", "code": "required"}],
            )

    def build_context(self, request: ChatRequest) -> ChatContext:
        """Resolve everything the prompt needs. Raises ValidationError on bad input."""
        self.validate(request)
        chat_type = resolve_chat_type(request.type, request.comment)
        extra = request.context.metadata if request.context else {}
        history = request.context.previous_messages if request.context else []
        context = ChatContext(
            chat_type=chat_type,
            language=request.language,
            history=trim_history(history),
            metadata={**extra, "requestTime": iso_timestamp(), "userAgent": APP_NAME},
        )
        logger.info(
            "Chat request: type=%s (%s) history=%d",
            chat_type.value,
            "requested" if request.type else "detected",
            len(context.history),
        )
        return context

    def _metadata(self, context: ChatContext, started: float) -> ResponseMetadata:
        return ResponseMetadata(
            model_info=self.model_info(),
            detected_type=context.chat_type,
            processing_time=round((time.perf_counter() - started) * 1000),
        )

    # ------------------------------------------------------------------------------
    # SINGLE REPLY
    # ------------------------------------------------------------------------------

    async def reply(self, request: ChatRequest) -> ChatResponse:
        """Generate the whole reply at once."""
        started = time.perf_counter()
        context = self.build_context(request)
        messages = compose_messages(context, request.comment)
        content = await self.completion.complete(messages)
        return ChatResponse(
            content=content,
            type=context.chat_type,
            metadata=self._metadata(context, started),
        )

    async def process_batch(self, requests: List[ChatRequest]) -> List[ChatResponse]:
        """Run independent replies concurrently. Any failure fails the whole batch."""
        return list(await asyncio.gather(*(self.reply(request) for request in requests)))

    # ------------------------------------------------------------------------------
    # STREAMED REPLY
    # ------------------------------------------------------------------------------

    async def stream_reply(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        """
        Yield zero or more ChunkEvents followed by exactly one CompleteEvent or ErrorEvent.
        Context is built when iteration starts, so a bad request raises ValidationError
        from the first __anext__; callers that must answer with an envelope instead of
        a stream call validate() before they start sending.
        """
        started = time.perf_counter()
        context = self.build_context(request)
        messages = compose_messages(context, request.comment)

        queue: asyncio.Queue = asyncio.Queue()
        accumulated: List[str] = []

        def on_chunk(delta: str) -> None:
            accumulated.append(delta)
            queue.put_nowait(ChunkEvent(content=delta, full_content="".join(accumulated)))

        task = asyncio.create_task(self.completion.complete_streaming(messages, on_chunk))
        task.add_done_callback(lambda _: queue.put_nowait(_STREAM_DONE))

        try:
            while True:
                item = await queue.get()
                if item is _STREAM_DONE:
                    break
                yield item

            try:
                content = task.result()
            except ChatError as e:
                yield ErrorEvent(error=e.message)
                return
            except Exception as e:
                logger.error("Streamed reply failed: %r", e, exc_info=True)
                yield ErrorEvent(error=SERVICE_UNAVAILABLE_MESSAGE)
                return

            logger.info("Streamed reply complete: %d chunk(s), %d chars", len(accumulated), len(content))
            yield CompleteEvent(content=content, metadata=self._metadata(context, started))
        finally:
            if not task.done():
                task.cancel()
