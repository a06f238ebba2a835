"""
Message-pattern dispatch.

A dispatch table maps a pattern such as ``user.find.id`` to a handler
``handler(payload, ctx)``. Each invocation gets its own store connection,
committed on success and rolled back on failure; the response cache is
shared by all invocations.
"""
import logging
import sqlite3
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from accounts.api.handlers import auth as auth_handlers
from accounts.api.handlers import users as user_handlers
from accounts.core.cache import ResponseCache
from accounts.core.exceptions import BadRequest, NotFound, RpcException
from accounts.db.database import get_db

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    conn: sqlite3.Connection
    cache: ResponseCache


Handler = Callable[[Any, RequestContext], Any]

HANDLER_GROUPS: dict[str, dict[str, Handler]] = {
    "auth": auth_handlers.HANDLERS,
    "user": user_handlers.HANDLERS,
}


def build_dispatch_table(groups: Iterable[str]) -> dict[str, Handler]:
    """Merge the handler tables of the requested service groups."""
    table: dict[str, Handler] = {}
    for group in groups:
        if group not in HANDLER_GROUPS:
            raise ValueError(f"Unknown service group: {group}")
        table.update(HANDLER_GROUPS[group])
    return table


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


class Dispatcher:
    def __init__(
        self,
        handlers: dict[str, Handler],
        cache: ResponseCache,
        database_url: Optional[str] = None,
    ) -> None:
        self._handlers = handlers
        self._cache = cache
        self._database_url = database_url

    @property
    def patterns(self) -> list[str]:
        return sorted(self._handlers)

    def dispatch(self, pattern: str, payload: Any = None) -> Any:
        """
        Run the handler registered for *pattern*.

        Raises:
            RpcException: for every failure the caller should see.
        """
        handler = self._handlers.get(pattern)
        if handler is None:
            logger.warning("No handler for pattern=%s", pattern)
            raise NotFound(f"No handler for pattern {pattern}")

        start_time = time.perf_counter()
        try:
            with get_db(self._database_url) as conn:
                result = handler(payload, RequestContext(conn=conn, cache=self._cache))
        except ValidationError as exc:
            logger.warning("Invalid payload for pattern=%s: %s", pattern, exc)
            raise BadRequest(_describe_validation_error(exc)) from exc
        except RpcException as exc:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "RPC | %s | status=%s | duration=%.3fms | %s",
                pattern,
                exc.status_code,
                elapsed_ms,
                exc.detail,
            )
            raise
        except Exception as exc:
            logger.error("Unhandled error for pattern=%s", pattern, exc_info=True)
            raise BadRequest("Unexpected error processing the request") from exc

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info("RPC | %s | status=ok | duration=%.3fms", pattern, elapsed_ms)
        return result
