"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all LangChat settings: the local Ollama model, generation
  parameters, request timeout/retry policy, UI limits and logging. Every value
  can be overridden from the environment or a .env file.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so deployments stay out of code).
  - Exposes OLLAMA_BASE_URL, OLLAMA_MODEL, OLLAMA_TEMPERATURE, OLLAMA_MAX_TOKENS
    for the chat model that LangChain drives.
  - Exposes API_TIMEOUT_S, API_COMPLETION_TIMEOUT_S, API_RETRY_ATTEMPTS and
    API_RETRY_DELAY_S, used by the completion service around every model call.
  - Defines how much conversation history is sent to the model per request.
  - Picks development or production defaults based on APP_ENV.

USAGE:
  Import what you need: `from config import OLLAMA_MODEL, MAX_HISTORY_MESSAGES`
  All services import from here so behaviour is consistent.
"""

import os
import logging
from dotenv import load_dotenv


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
# Load environment variables from .env file (if it exists).
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag; accepts 1/true/yes/on (case-insensitive)."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast=float):
    """Read a numeric setting; falls back to the default (with a warning) on garbage."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Invalid value for %s=%r, using default %r", name, raw, default)
        return default


# ============================================================================
# APPLICATION
# ============================================================================
APP_NAME = os.getenv("APP_NAME", "").strip() or "LangChain Chat Assistant"
APP_VERSION = os.getenv("APP_VERSION", "").strip() or "1.0.0"
APP_DESCRIPTION = "Chat assistant built on LangChain and a local Ollama model"

# "development" turns on debug logging; anything else is treated as production.
APP_ENV = (os.getenv("APP_ENV", "").strip() or "production").lower()
IS_DEVELOPMENT = APP_ENV == "development"
DEBUG = _env_bool("DEBUG", IS_DEVELOPMENT)
LOG_LEVEL = (os.getenv("LOG_LEVEL", "").strip() or ("DEBUG" if IS_DEVELOPMENT else "INFO")).upper()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_number("PORT", 8000, int)

# ============================================================================
# OLLAMA MODEL CONFIGURATION
# ============================================================================
# The model runs locally behind Ollama; LangChain's ChatOllama talks to it.
# OLLAMA_STREAMING=false makes the streaming endpoint fall back to one-shot
# generation and deliver the whole reply as the terminal event.

OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "").strip() or "http://localhost:11434"
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "").strip() or "qwen"
OLLAMA_TEMPERATURE = _env_number("OLLAMA_TEMPERATURE", 0.7)
OLLAMA_MAX_TOKENS = _env_number("OLLAMA_MAX_TOKENS", 2048, int)
OLLAMA_STREAMING = _env_bool("OLLAMA_STREAMING", True)

# ============================================================================
# API CALL POLICY
# ============================================================================
# API_TIMEOUT_S bounds the wait for each streamed chunk (the first one included),
# so a reply that keeps producing tokens runs to the end. A single-shot call
# has no chunks to wait on and gets the longer API_COMPLETION_TIMEOUT_S instead;
# it is not retried after hitting that deadline. Other failures are retried with
# exponential backoff starting at API_RETRY_DELAY_S.
API_TIMEOUT_S = _env_number("API_TIMEOUT_S", 30.0)
API_COMPLETION_TIMEOUT_S = _env_number("API_COMPLETION_TIMEOUT_S", 300.0)
API_RETRY_ATTEMPTS = max(1, _env_number("API_RETRY_ATTEMPTS", 3, int))
API_RETRY_DELAY_S = _env_number("API_RETRY_DELAY_S", 1.0)

# ============================================================================
# CHAT LIMITS
# ============================================================================
# Maximum history entries (user or assistant messages) injected into a prompt.
# Older entries are dropped so the prompt size stays bounded.
MAX_HISTORY_MESSAGES = _env_number("MAX_HISTORY_MESSAGES", 10, int)

# Maximum length (characters) of a message typed into the client. The server
# accepts longer comments.
MAX_MESSAGE_LENGTH = _env_number("MAX_MESSAGE_LENGTH", 1000, int)

# Maximum number of messages the client keeps in its log.
CHAT_HISTORY_LIMIT = _env_number("CHAT_HISTORY_LIMIT", 100, int)

# Target language used by the translation prompt when the request names none.
DEFAULT_TARGET_LANGUAGE = "中文"

# ============================================================================
# USER-FACING MESSAGES
# ============================================================================
# Replies and errors shown to the user. Internal error details never reach
# the client; they are only logged.
FALLBACK_REPLY = "Sorry, I was unable to generate a reply."
SERVICE_UNAVAILABLE_MESSAGE = "The AI service is temporarily unavailable, please try again later."

# ============================================================================
# CLIENT
# ============================================================================
# Where chat_cli.py and client.ChatApiClient send requests by default.
CHAT_API_BASE_URL = os.getenv("CHAT_API_BASE_URL", "").strip() or f"http://localhost:{PORT}"
