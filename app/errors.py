"""
ERROR TAXONOMY
==============

Exceptions raised by the services and rendered by the API layer. Every class
carries the HTTP status code it maps to and a message that is safe to show to
the user. Anything that is not a ChatError is treated as an internal failure
and its text never reaches the client (see app.utils.response.from_error).

  ValidationError          400  bad or empty input, rejected before any model call
  UnauthorizedError        401
  ForbiddenError           403
  NotFoundError            404
  ServiceUnavailableError  500  the model call failed; generic message only
  ModelUnavailableError    500  raised by the completion service
"""

from typing import List, Optional

from config import SERVICE_UNAVAILABLE_MESSAGE


class ChatError(Exception):
    """Base class for errors whose message may be shown to the user."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[dict]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(ChatError):
    status_code = 400
    default_message = "Request parameters must not be empty"


class UnauthorizedError(ChatError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(ChatError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ChatError):
    status_code = 404
    default_message = "Resource not found"


class ServiceUnavailableError(ChatError):
    status_code = 500
    default_message = SERVICE_UNAVAILABLE_MESSAGE


class ModelUnavailableError(ServiceUnavailableError):
    """The underlying language model could not produce a completion."""
