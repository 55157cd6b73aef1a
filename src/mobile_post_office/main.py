"""
FastAPI application factory.

    uvicorn --factory mobile_post_office.main:create_app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mobile_post_office.api.v1.error_handlers import register_exception_handlers
from mobile_post_office.api.v1.posts import router as posts_router
from mobile_post_office.config.settings import Settings, get_settings
from mobile_post_office.core.logging import RequestIDMiddleware, setup_logging, stop_queue_logging
from mobile_post_office.db.session import get_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app.startup")
    yield
    logger.info("app.shutdown")
    await get_engine().dispose()
    stop_queue_logging()


def create_app(settings: Settings | None = None, *, configure_logging: bool = True) -> FastAPI:
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)

    app = FastAPI(title="Mobile Post Office API", lifespan=lifespan)
    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)
    app.include_router(posts_router)
    return app
