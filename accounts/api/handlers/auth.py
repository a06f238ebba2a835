"""auth.* message handlers."""
from typing import Any

from accounts.api.handlers.common import require_mapping
from accounts.schemas.auth import LoginRequest, VerifyRequest
from accounts.services.auth_service import AuthService


def health(payload: Any, ctx) -> str:
    return "Auth service is up and running"


def login(payload: Any, ctx) -> dict:
    data = LoginRequest.model_validate(require_mapping(payload))
    return AuthService(ctx.conn).login(data).to_wire()


def verify(payload: Any, ctx) -> dict:
    # bare token strings are accepted as well as {"token": ...}
    if isinstance(payload, str):
        payload = {"token": payload}
    data = VerifyRequest.model_validate(require_mapping(payload))
    return AuthService(ctx.conn).verify(data.token).to_wire()


HANDLERS = {
    "auth.health": health,
    "auth.login": login,
    "auth.verify": verify,
}
