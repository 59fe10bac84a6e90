"""
RESPONSE ENVELOPE UTILITY
=========================

Every API result, success or failure, is wrapped in the same envelope:

  {"code": 200, "data": {...}, "message": "OK",
   "timestamp": "2026-02-05T09:30:12.345Z", "requestId": "3f9a1c2e"}

Failures carry "errors" (optional field details) instead of "data". Each
envelope gets a short correlation id if the caller has none, and its outcome is
logged so a request can be traced by id.

Error messages: only ChatError subclasses (our own, written to be user-facing)
pass their message through. Any other exception becomes a generic 500 message;
its text is logged, never returned.
"""

import logging
import uuid
from typing import Any, List, Optional

from pydantic import BaseModel

from app.errors import ChatError
from app.models import ApiEnvelope, ApiErrorDetail

logger = logging.getLogger("LangChat")

OK = 200
BAD_REQUEST = 400
NOT_FOUND = 404
INTERNAL_SERVER_ERROR = 500

GENERIC_ERROR_MESSAGE = "Internal server error"


def generate_request_id() -> str:
    """Short random token used to correlate one request/response pair in logs."""
    return uuid.uuid4().hex[:8]


def _log_outcome(envelope: ApiEnvelope) -> None:
    if envelope.ok:
        logger.info("[API Success] code=%s message=%s requestId=%s",
                    envelope.code, envelope.message, envelope.request_id)
    else:
        logger.error("[API Error] code=%s message=%s requestId=%s",
                     envelope.code, envelope.message, envelope.request_id)


def success_response(
    data: Any = None,
    message: str = "OK",
    code: int = OK,
    request_id: Optional[str] = None,
) -> ApiEnvelope:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    envelope = ApiEnvelope(
        code=code,
        data=data,
        message=message,
        request_id=request_id or generate_request_id(),
    )
    _log_outcome(envelope)
    return envelope


def error_response(
    message: str = GENERIC_ERROR_MESSAGE,
    code: int = INTERNAL_SERVER_ERROR,
    errors: Optional[List[dict]] = None,
    request_id: Optional[str] = None,
) -> ApiEnvelope:
    envelope = ApiEnvelope(
        code=code,
        message=message,
        errors=[ApiErrorDetail(**e) for e in errors] if errors else None,
        request_id=request_id or generate_request_id(),
    )
    _log_outcome(envelope)
    return envelope


def bad_request_response(message: str = "Invalid request parameters", errors=None, request_id=None) -> ApiEnvelope:
    return error_response(message, BAD_REQUEST, errors, request_id)


def not_found_response(message: str = "Resource not found", request_id=None) -> ApiEnvelope:
    return error_response(message, NOT_FOUND, None, request_id)


def internal_server_error_response(message: str = GENERIC_ERROR_MESSAGE, request_id=None) -> ApiEnvelope:
    return error_response(message, INTERNAL_SERVER_ERROR, None, request_id)


def from_error(error: BaseException, request_id: Optional[str] = None) -> ApiEnvelope:
    """Map an exception to an error envelope (status from its ChatError class)."""
    if isinstance(error, ChatError):
        return error_response(error.message, error.status_code, error.errors, request_id)
    logger.error("Unhandled error mapped to %s: %r", INTERNAL_SERVER_ERROR, error)
    return error_response(GENERIC_ERROR_MESSAGE, INTERNAL_SERVER_ERROR, None, request_id)


class ResponseHelper:
    """Builds every envelope of one request with the same correlation id."""

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id or generate_request_id()

    def success(self, data: Any = None, message: str = "OK", code: int = OK) -> ApiEnvelope:
        return success_response(data, message, code, self.request_id)

    def error(self, message: str = GENERIC_ERROR_MESSAGE, code: int = INTERNAL_SERVER_ERROR, errors=None) -> ApiEnvelope:
        return error_response(message, code, errors, self.request_id)

    def bad_request(self, message: str = "Invalid request parameters", errors=None) -> ApiEnvelope:
        return bad_request_response(message, errors, self.request_id)

    def not_found(self, message: str = "Resource not found") -> ApiEnvelope:
        return not_found_response(message, self.request_id)

    def from_error(self, error: BaseException) -> ApiEnvelope:
        return from_error(error, self.request_id)
