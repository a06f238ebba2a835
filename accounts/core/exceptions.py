"""
RPC error taxonomy.

Services raise these; the dispatcher turns them into ``{"status", "message"}``
responses for the caller. Anything that is not an RpcException is an
unclassified failure and reaches the caller as a BadRequest.
"""
import logging
from typing import NoReturn, Optional

from fastapi import status

logger = logging.getLogger(__name__)


class RpcException(Exception):
    """An error the caller is meant to see, with an HTTP-style status code."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, status_code: Optional[int] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict:
        return {"status": self.status_code, "message": self.detail}


class BadRequest(RpcException):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(RpcException):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFound(RpcException):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(RpcException):
    status_code = status.HTTP_409_CONFLICT


class DuplicateFieldError(Exception):
    """Raised by the store when a unique column (username/email) collides."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Duplicate value for unique field '{field}'")
        self.field = field


def handle_exception(error: Exception, context: str, message: str) -> NoReturn:
    """
    Re-raise classified RPC errors untouched; log anything else with its
    context and surface it as a generic BadRequest carrying *message*.
    """
    if isinstance(error, RpcException):
        raise error
    logger.error("[%s] %s: %s", context, message, error, exc_info=error)
    raise BadRequest(message) from error
