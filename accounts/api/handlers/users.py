"""
user.* message handlers.

Single-record and batch-by-ids lookups are served from the response cache.
Keys include the caller's visibility scope so that a record cached for an
admin is never served to a caller who may not see it. The paginated list is
never cached.
"""
from typing import Any

from accounts.api.handlers.common import current_user_from, require_mapping, require_uuid
from accounts.core.exceptions import BadRequest
from accounts.core.policy import visibility_filter
from accounts.schemas.user import Pagination, UserCreate, UserUpdate, is_uuid
from accounts.services.user_service import UserService


def health(payload: Any, ctx) -> str:
    return "users service is up and running!"


def create(payload: Any, ctx) -> dict:
    data = UserCreate.model_validate(require_mapping(payload))
    return UserService(ctx.conn, ctx.cache).create(data).to_wire()


def find_all(payload: Any, ctx) -> dict:
    payload = require_mapping(payload)
    current_user = current_user_from(payload)
    pagination = Pagination.model_validate(
        payload.get("pagination") or payload.get("paginationDto") or {}
    )
    return UserService(ctx.conn, ctx.cache).find_all(pagination, current_user).to_wire()


def find_one(payload: Any, ctx) -> dict:
    payload = require_mapping(payload)
    user_id = require_uuid(payload.get("id"))
    current_user = current_user_from(payload)
    scope = visibility_filter(current_user.roles).scope
    service = UserService(ctx.conn, ctx.cache)
    return ctx.cache.get_or_set(
        f"user:id:{user_id}:{scope}",
        lambda: service.find_one(user_id, current_user).to_wire(),
    )


def find_by_username(payload: Any, ctx) -> dict:
    payload = require_mapping(payload)
    username = payload.get("username")
    if not isinstance(username, str) or not username:
        raise BadRequest("Invalid username")
    current_user = current_user_from(payload)
    scope = visibility_filter(current_user.roles).scope
    service = UserService(ctx.conn, ctx.cache)
    return ctx.cache.get_or_set(
        f"user:username:{username}:{scope}",
        lambda: service.find_by_username(username, current_user).to_wire(),
    )


def find_summary(payload: Any, ctx) -> dict:
    payload = require_mapping(payload)
    user_id = require_uuid(payload.get("id"))
    current_user = current_user_from(payload)
    scope = visibility_filter(current_user.roles).scope
    service = UserService(ctx.conn, ctx.cache)
    return ctx.cache.get_or_set(
        f"user:summary:{user_id}:{scope}",
        lambda: service.find_one_with_summary(user_id, current_user).to_wire(),
    )


def find_by_ids(payload: Any, ctx) -> list:
    payload = require_mapping(payload)
    ids = payload.get("ids")
    if not isinstance(ids, list) or not all(is_uuid(i) for i in ids):
        raise BadRequest("Some user IDs are invalid")
    current_user = current_user_from(payload)
    service = UserService(ctx.conn, ctx.cache)
    # batch lookup ignores visibility, so the key carries no scope
    return ctx.cache.get_or_set(
        "users:ids:" + ",".join(sorted(ids)),
        lambda: [s.to_wire() for s in service.find_by_ids(ids, current_user)],
    )


def update(payload: Any, ctx) -> dict:
    payload = require_mapping(payload)
    current_user = current_user_from(payload)
    fields = payload.get("updateUser") or payload.get("updateUserDto")
    if fields is None:
        fields = {k: v for k, v in payload.items() if k != "user"}
    data = UserUpdate.model_validate(require_mapping(fields))
    return UserService(ctx.conn, ctx.cache).update(data, current_user).to_wire()


def remove(payload: Any, ctx) -> dict:
    payload = require_mapping(payload)
    user_id = require_uuid(payload.get("id"))
    current_user = current_user_from(payload)
    return UserService(ctx.conn, ctx.cache).remove(user_id, current_user).to_wire()


def restore(payload: Any, ctx) -> dict:
    payload = require_mapping(payload)
    user_id = require_uuid(payload.get("id"))
    current_user = current_user_from(payload)
    return UserService(ctx.conn, ctx.cache).restore(user_id, current_user).to_wire()


HANDLERS = {
    "user.health": health,
    "user.create": create,
    "user.all": find_all,
    "user.find.id": find_one,
    "user.find.username": find_by_username,
    "user.find.summary": find_summary,
    "user.find.ids": find_by_ids,
    "user.update": update,
    "user.remove": remove,
    "user.restore": restore,
}
