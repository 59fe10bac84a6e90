"""
CHAT API CLIENT
===============

Thin requests-based client for the LangChat server.

  api = ChatApiClient("http://localhost:8000")
  envelope = api.chat("Hello")                 # POST /api/chat -> envelope dict
  for piece in api.stream_chat("Hello"):       # POST /api/chat-stream -> raw bytes
      ...

Connection problems, timeouts and non-2xx statuses on the stream endpoint raise
TransportError so the caller can fall back to api.chat().
"""

import logging
from contextlib import closing
from typing import Iterator, List, Optional

import requests

from client.errors import ChatClientError, TransportError
from config import API_TIMEOUT_S, CHAT_API_BASE_URL

logger = logging.getLogger("LangChat.client")


class ChatApiClient:
    def __init__(self, base_url: str = CHAT_API_BASE_URL, timeout: float = API_TIMEOUT_S,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @staticmethod
    def build_body(comment: str, history: Optional[List[dict]] = None, chat_type: Optional[str] = None,
                   language: Optional[str] = None, streaming: bool = False) -> dict:
        body = {"comment": comment, "streaming": streaming}
        if chat_type:
            body["type"] = chat_type
        if language:
            body["language"] = language
        if history:
            body["context"] = {"previousMessages": history}
        return body

    def chat(self, comment: str, **options) -> dict:
        """POST /api/chat and return the envelope dict (for any status that carries one)."""
        try:
            response = self.session.post(
                f"{self.base_url}/api/chat",
                json=self.build_body(comment, **options),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Cannot reach chat server: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise ChatClientError(f"Error: {response.status_code} - {response.text[:200]}") from e

    def stream_chat(self, comment: str, **options) -> Iterator[bytes]:
        """POST /api/chat-stream and yield body bytes as they arrive."""
        try:
            response = self.session.post(
                f"{self.base_url}/api/chat-stream",
                json=self.build_body(comment, streaming=True, **options),
                stream=True,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Cannot reach chat server: {e}") from e

        with closing(response):
            if not response.ok:
                raise TransportError(f"HTTP error! status: {response.status_code}")
            try:
                for piece in response.iter_content(chunk_size=None):
                    if piece:
                        yield piece
            except requests.exceptions.RequestException as e:
                raise TransportError(f"Stream interrupted: {e}") from e
