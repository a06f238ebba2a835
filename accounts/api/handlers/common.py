"""Payload helpers shared by the RPC handlers."""
import logging
from typing import Any

from accounts.core.exceptions import BadRequest, Unauthorized
from accounts.schemas.user import CurrentUser, is_uuid

logger = logging.getLogger(__name__)


def require_mapping(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise BadRequest("Payload must be an object")
    return payload


def current_user_from(payload: dict) -> CurrentUser:
    """The caller identity carried under ``user``; required for every user.* read/write."""
    raw = payload.get("user")
    if not raw:
        logger.warning("Payload carries no caller identity")
        raise Unauthorized("Unauthorized")
    return CurrentUser.model_validate(raw)


def require_uuid(value: Any) -> str:
    if not is_uuid(value):
        raise BadRequest("Invalid user ID")
    return value
