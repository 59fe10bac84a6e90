"""
LANGCHAT APPLICATION PACKAGE
============================

Server side of the LangChat assistant.

  from app.main import app
  from app.models import ChatRequest
  from app.services.chat_service import ChatService

FILE STRUCTURE:
  app/
    __init__.py   - This file; marks 'app' as a package.
    main.py       - FastAPI app and all HTTP endpoints (/api/chat, /api/chat-stream, ...).
    models.py     - Pydantic models for requests, responses, stream events and the envelope.
    errors.py     - Error classes and the HTTP status each maps to.
    services/     - Classifier, prompt composer, completion service, chat service, stream encoder.
    utils/        - Helpers: retry with backoff and timeout, timestamps, response envelopes.
"""
