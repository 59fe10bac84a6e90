"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (app.main) calls these services;
they don't handle HTTP, only classification, prompts, model calls and events.

MODULES:
    classifier         - keyword-based chat type detection
    prompt_composer    - system prompt + history + input as LangChain messages
    completion_service - ChatOllama calls: single-shot and streamed, with timeout/retry
    chat_service       - request -> context -> reply / stream of events / batch
    stream_encoder     - events -> newline-delimited JSON lines
"""
