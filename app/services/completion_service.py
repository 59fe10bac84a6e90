"""
COMPLETION SERVICE MODULE
=========================

Wraps the LangChain chat model (ChatOllama in production). The model is built
once at startup and shared read-only by every request. Two operations:

  complete(messages)                    -> full reply text, one model call.
  complete_streaming(messages, on_chunk) -> full reply text; each delta is handed
                                           to on_chunk in generation order first.

If streaming is switched off (OLLAMA_STREAMING=false) or the model has
disable_streaming set, complete_streaming falls back to complete() and on_chunk is
never called; the caller then delivers the whole text as its terminal event.

Timeouts:
  - Streamed: API_TIMEOUT_S bounds the wait for each delta (the first one
    included), not the whole reply. A model that keeps producing tokens runs to
    the end; one that stalls is cut off.
  - Single-shot: the whole call is bounded by API_COMPLETION_TIMEOUT_S and is not
    retried after hitting it.

Other failures are retried API_RETRY_ATTEMPTS times with exponential backoff. A
streamed call is only retried while no delta has been delivered, so the caller
never sees duplicated text.

A reply that is empty or whitespace is replaced with FALLBACK_REPLY. Model errors
are logged with their traceback and re-raised as ModelUnavailableError carrying
a generic message; the original error text never reaches the caller.
"""

import asyncio
import inspect
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Union

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_ollama import ChatOllama

from app.errors import ModelUnavailableError
from app.models import ModelInfo
from app.utils.retry import with_retry
from config import (
    API_COMPLETION_TIMEOUT_S,
    API_RETRY_ATTEMPTS,
    API_RETRY_DELAY_S,
    API_TIMEOUT_S,
    FALLBACK_REPLY,
    OLLAMA_BASE_URL,
    OLLAMA_MAX_TOKENS,
    OLLAMA_MODEL,
    OLLAMA_STREAMING,
    OLLAMA_TEMPERATURE,
)

logger = logging.getLogger("LangChat")

ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]


def create_chat_model() -> BaseChatModel:
    """Build the Ollama chat model from config. No network traffic happens here."""
    return ChatOllama(
        base_url=OLLAMA_BASE_URL,
        model=OLLAMA_MODEL,
        temperature=OLLAMA_TEMPERATURE,
        num_predict=OLLAMA_MAX_TOKENS,
    )


class CompletionService:
    """Single-shot and incremental generation on top of one shared chat model."""

    def __init__(
        self,
        llm: BaseChatModel,
        streaming: bool = OLLAMA_STREAMING,
        timeout: Optional[float] = API_TIMEOUT_S,
        completion_timeout: Optional[float] = API_COMPLETION_TIMEOUT_S,
        retry_attempts: int = API_RETRY_ATTEMPTS,
        retry_delay: float = API_RETRY_DELAY_S,
    ):
        self.llm = llm
        self.streaming = streaming
        self.timeout = timeout
        self.completion_timeout = completion_timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        # Chat model -> plain string, so callers only ever see text.
        self.chain = llm | StrOutputParser()

    @property
    def supports_streaming(self) -> bool:
        """True when deltas can be delivered as they are generated."""
        # disable_streaming may also be "tool_calling", which only applies when tools are bound.
        return self.streaming and getattr(self.llm, "disable_streaming", False) is not True

    def model_info(self) -> ModelInfo:
        return ModelInfo(
            base_url=str(getattr(self.llm, "base_url", None) or OLLAMA_BASE_URL),
            model=str(getattr(self.llm, "model", None) or OLLAMA_MODEL),
            temperature=_number_or(getattr(self.llm, "temperature", None), OLLAMA_TEMPERATURE),
            max_tokens=int(_number_or(getattr(self.llm, "num_predict", None), OLLAMA_MAX_TOKENS)),
            streaming=self.supports_streaming,
        )

    # ------------------------------------------------------------------------------
    # SINGLE-SHOT
    # ------------------------------------------------------------------------------

    async def complete(self, messages: List[BaseMessage]) -> str:
        """Generate the full reply in one call."""
        async def invoke_chain() -> str:
            return await self.chain.ainvoke(messages)

        try:
            text = await with_retry(
                invoke_chain,
                max_retries=self.retry_attempts,
                initial_delay=self.retry_delay,
                timeout=self.completion_timeout,
                # A call that hit the deadline was still generating; a rerun hits it again.
                should_retry=lambda e: not isinstance(e, asyncio.TimeoutError),
            )
        except Exception as e:
            logger.error("Model completion failed: %r", e, exc_info=True)
            raise ModelUnavailableError() from e

        return _with_fallback(text)

    # ------------------------------------------------------------------------------
    # STREAMING
    # ------------------------------------------------------------------------------

    async def complete_streaming(self, messages: List[BaseMessage], on_chunk: ChunkCallback) -> str:
        """
        Deliver each delta to on_chunk as it arrives and return the accumulated text.
        Falls back to complete() when the model cannot stream.
        """
        if not self.supports_streaming:
            logger.info("Streaming unavailable for this model, falling back to single-shot completion")
            return await self.complete(messages)

        parts: List[str] = []

        async def stream_chain() -> str:
            stream = self.chain.astream(messages)
            try:
                while True:
                    try:
                        delta = await _next_delta(stream, self.timeout)
                    except StopAsyncIteration:
                        break
                    if not delta:
                        continue
                    parts.append(delta)
                    result = on_chunk(delta)
                    if inspect.isawaitable(result):
                        await result
            finally:
                await stream.aclose()
            return "".join(parts)

        try:
            text = await with_retry(
                stream_chain,
                max_retries=self.retry_attempts,
                initial_delay=self.retry_delay,
                # Once text has reached the caller a retry would duplicate it.
                should_retry=lambda _: not parts,
            )
        except Exception as e:
            logger.error("Model streaming failed after %d chunk(s): %r", len(parts), e, exc_info=True)
            raise ModelUnavailableError() from e

        return _with_fallback(text)


async def _next_delta(stream: AsyncIterator[str], timeout: Optional[float]) -> str:
    """Next delta from the stream, waiting at most timeout seconds for it."""
    if timeout:
        return await asyncio.wait_for(stream.__anext__(), timeout=timeout)
    return await stream.__anext__()


def _with_fallback(text: Optional[str]) -> str:
    if not text or not text.strip():
        logger.warning("Model returned an empty reply, using fallback text")
        return FALLBACK_REPLY
    return text


def _number_or(value: Any, default: float) -> float:
    return value if isinstance(value, (int, float)) else default
