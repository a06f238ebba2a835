"""
HTTP transport for the message-pattern RPC surface:
  POST /rpc/{pattern}   – dispatch a JSON payload to the handler for *pattern*
  GET  /rpc             – list the patterns this process serves
  GET  /health          – liveness probe

Errors are answered with ``{"status": <code>, "message": <text>}`` and the
same HTTP status code.
"""
from typing import Any
import logging

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from accounts.api.dispatcher import Dispatcher
from accounts.core.dependencies import get_dispatcher
from accounts.core.exceptions import RpcException

logger = logging.getLogger(__name__)

router = APIRouter(tags=["RPC"])


@router.post("/rpc/{pattern}", summary="Dispatch a message pattern")
def dispatch(
    pattern: str,
    payload: Any = Body(None),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    """
    Plain ``def``: FastAPI runs it in the worker threadpool, so password
    hashing and token signing never block the event loop.
    """
    logger.trace("Dispatching pattern=%s", pattern)
    try:
        return dispatcher.dispatch(pattern, payload)
    except RpcException as exc:
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@router.get("/rpc", summary="List served message patterns")
def list_patterns(dispatcher: Dispatcher = Depends(get_dispatcher)) -> list[str]:
    return dispatcher.patterns


@router.get("/health", summary="Liveness probe")
def health() -> str:
    return "ok"
