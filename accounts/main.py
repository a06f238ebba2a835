"""
Application entry point.
Run with:  uvicorn accounts.main:app

SERVICES selects which message-pattern groups this process answers
("auth", "user", or both), so the authentication and user-directory
services can be deployed separately against the same store.
"""
import logging
from contextlib import asynccontextmanager
from typing import Iterable, Optional

from fastapi import FastAPI

from accounts.core.logging_config import configure_logging
from accounts.core.config import settings
from accounts.api.dispatcher import Dispatcher, build_dispatch_table
from accounts.api.rpc import router as rpc_router
from accounts.core.cache import ResponseCache, get_response_cache
from accounts.db.database import init_db
from accounts.db.seeder import seed_users

logger = logging.getLogger(__name__)


def create_app(
    services: Optional[Iterable[str]] = None,
    cache: Optional[ResponseCache] = None,
    database_url: Optional[str] = None,
    seed: Optional[bool] = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance."""
    services = list(services or settings.SERVICES)
    seed = settings.SEED_USERS if seed is None else seed

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Initializing database")
        init_db(database_url)
        if seed:
            # ⚠️ DEV ONLY
            seed_users(database_url)
        yield
        logger.info("Shutting down services=%s", services)

    logger.info("Starting application services=%s", services)
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Authentication and user-directory services over message-pattern RPC.",
        lifespan=lifespan,
    )
    app.state.dispatcher = Dispatcher(
        build_dispatch_table(services),
        cache=cache or get_response_cache(),
        database_url=database_url,
    )
    app.include_router(rpc_router)
    return app


configure_logging()
app = create_app()
