"""
RUN SCRIPT - Start the LangChat server
======================================

PURPOSE:
  Single entry point to start the backend.

WHAT IT DOES:
  - Imports the FastAPI app from app.main.
  - Runs it with uvicorn on HOST:PORT from config (default 0.0.0.0:8000).
  - reload is on when DEBUG is set (APP_ENV=development), so code changes restart the server.

USAGE:
  python run.py

  Then POST to http://localhost:8000/api/chat, or run `python chat_cli.py`.
  API docs: http://localhost:8000/docs

NOTE:
  Ollama must be running (OLLAMA_BASE_URL, default http://localhost:11434) with
  OLLAMA_MODEL pulled before the first chat request.
"""

import uvicorn

from config import DEBUG, HOST, PORT

# ------------------------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------------------------
if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",   # String path to the FastAPI app instance (module:variable).
        host=HOST,
        port=PORT,
        reload=DEBUG
    )
