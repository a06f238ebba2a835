"""
FastAPI dependency helpers for the HTTP transport.
"""
import logging

from fastapi import HTTPException, Request, status

from accounts.api.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


def get_dispatcher(request: Request) -> Dispatcher:
    """Return the dispatcher wired into the application at startup."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        logger.error("Dispatcher requested before application wiring")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not ready",
        )
    return dispatcher
