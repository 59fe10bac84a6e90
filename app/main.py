"""
LANGCHAT MAIN API
=================

This module defines the FastAPI application and all HTTP endpoints. User text is
classified, wrapped in a chat-type prompt and sent to a local Ollama model through
LangChain; the reply comes back in the standard envelope or as a stream.

ENDPOINTS:
  GET  /                  - Returns API name and list of endpoints.
  GET  /health            - Returns whether the services are initialized.
  POST /api/chat          - One-shot chat. Returns ApiEnvelope<ChatResponse>.
  POST /api/chat-stream   - Streamed chat. Body is newline-delimited JSON events
                            (chunk..., then complete or error).
  GET  /api/user          - Static example user in the envelope.
  GET  /getUser           - Echo of the request (method, query, user agent).

REQUEST BODY (both chat endpoints):
  {"comment": "Translate this sentence", "type": "translation", "language": "English",
   "context": {"previousMessages": [{"role": "user", "content": "..."}]}}

ERRORS:
  Empty comment -> 400 envelope, no model call. Model failure -> 500 envelope with a
  generic message. Once a stream has started, failures arrive as an error event.
  The HTTP status code always equals the envelope code.

STARTUP:
  The lifespan function builds the chat model, CompletionService and ChatService once
  and stores them on app.state; handlers receive them through Depends(get_chat_service).
"""

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
import uvicorn

from app.errors import ChatError
from app.models import ApiEnvelope, ChatRequest
from app.services.chat_service import ChatService
from app.services.completion_service import CompletionService, create_chat_model
from app.services.stream_encoder import STREAM_HEADERS, STREAM_MEDIA_TYPE, encode_stream
from app.utils.response import ResponseHelper, bad_request_response, from_error
from app.utils.time_info import iso_timestamp
from config import APP_DESCRIPTION, APP_NAME, APP_VERSION, HOST, LOG_LEVEL, PORT, DEBUG


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("LangChat")


def envelope_response(envelope: ApiEnvelope) -> JSONResponse:
    """Render an envelope with an HTTP status equal to its code."""
    return JSONResponse(status_code=envelope.code, content=envelope.to_wire())


# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the services once per process. The chat model holds only configuration
    (no connection is opened until the first request), so startup does not need
    Ollama to be running. Services are read-only after this point.
    """
    logger.info("=" * 60)
    logger.info("%s %s - Starting Up...", APP_NAME, APP_VERSION)
    logger.info("=" * 60)

    try:
        completion_service = CompletionService(create_chat_model())
        app.state.chat_service = ChatService(completion_service)

        info = completion_service.model_info()
        logger.info("Model: %s at %s (streaming=%s)", info.model, info.base_url, info.streaming)
        logger.info("API: http://localhost:%s  Docs: http://localhost:%s/docs", PORT, PORT)
        logger.info("=" * 60)
    except Exception as e:
        logger.error(f"Fatal error during startup: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down %s", APP_NAME)


def get_chat_service(request: Request) -> ChatService:
    """Dependency: the process-wide ChatService built at startup."""
    service = getattr(request.app.state, "chat_service", None)
    if service is None:
        raise ChatError("Chat service not initialized")
    return service


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------
app = FastAPI(
    title=APP_NAME,
    description=APP_DESCRIPTION,
    version=APP_VERSION,
    debug=DEBUG,
    lifespan=lifespan,
)

# Allow any origin so a browser front end on another port can call this API.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    return envelope_response(from_error(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body") or None,
            "message": err.get("msg", "invalid value"),
            "code": err.get("type"),
        }
        for err in exc.errors()
    ]
    return envelope_response(bad_request_response("Invalid request parameters", errors))


# =========================================================================
# API ENDPOINTS
# =========================================================================

@app.get("/")
async def root():
    """Return the API name and a short description of each endpoint (for discovery)."""
    return {
        "message": f"{APP_NAME} API",
        "endpoints": {
            "/api/chat": "One-shot chat reply in the standard envelope",
            "/api/chat-stream": "Streamed chat reply as newline-delimited JSON events",
            "/api/user": "Example user",
            "/health": "System health check",
        },
    }


@app.get("/health")
async def health(request: Request):
    """Return 'healthy' and whether the chat service is initialized."""
    return {
        "status": "healthy",
        "chat_service": getattr(request.app.state, "chat_service", None) is not None,
    }


@app.post("/api/chat")
async def chat(body: ChatRequest, chat_service: ChatService = Depends(get_chat_service)):
    """
    One-shot chat endpoint.

    HOW IT WORKS:
    1. Rejects an empty comment with 400 (no model call)
    2. Resolves the chat type (explicit "type" or keyword detection)
    3. Builds the prompt from the type's system template, history and comment
    4. Calls the model once and wraps the reply in the envelope

    RESPONSE:
    {
        "code": 200,
        "data": {"content": "...", "type": "translation", "timestamp": "...",
                 "metadata": {"modelInfo": {...}, "detectedType": "translation", "processingTime": 812}},
        "message": "Chat reply generated",
        "timestamp": "...",
        "requestId": "3f9a1c2e"
    }
    """
    response = ResponseHelper()
    try:
        reply = await chat_service.reply(body)
        return envelope_response(response.success(reply, "Chat reply generated"))
    except ChatError as e:
        return envelope_response(response.from_error(e))
    except Exception as e:
        logger.error(f"Error processing chat: {e}", exc_info=True)
        return envelope_response(response.from_error(e))


@app.post("/api/chat-stream")
async def chat_stream(body: ChatRequest, chat_service: ChatService = Depends(get_chat_service)):
    """
    Streamed chat endpoint.

    Validation runs before any byte is sent, so an empty comment still gets a
    normal 400 envelope. After that the body is a sequence of JSON lines:

      {"type":"chunk","content":<delta>,"fullContent":<so far>,"timestamp":...}
      {"type":"complete","content":<full text>,"timestamp":...,"metadata":{...}}
      {"type":"error","error":<message>,"timestamp":...}

    Exactly one complete or error line ends the stream, then the connection closes.
    """
    response = ResponseHelper()
    try:
        chat_service.validate(body)
    except ChatError as e:
        return envelope_response(response.from_error(e))

    logger.info("Streaming chat request %s", response.request_id)
    return StreamingResponse(
        encode_stream(chat_service.stream_reply(body)),
        media_type=STREAM_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )


@app.get("/api/user")
async def get_user():
    """Static example user, wrapped in the standard envelope."""
    user = {
        "id": 1,
        "name": "Example User",
        "email": "user@example.com",
        "role": "user",
        "createdAt": iso_timestamp(),
    }
    return envelope_response(ResponseHelper().success(user, "User fetched"))


@app.get("/getUser")
async def get_user_info(request: Request):
    """Echo basic information about the incoming request."""
    return {
        "method": request.method,
        "query": dict(request.query_params),
        "params": dict(request.path_params),
        "userAgent": request.headers.get("user-agent"),
    }


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m app.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py); used if someone does python -m app.main"""
    uvicorn.run(
        "app.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
        log_level=LOG_LEVEL.lower(),
    )

if __name__ == "__main__":
    run()
