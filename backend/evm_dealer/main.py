"""
EVM dealer management API

Startup creates missing tables, seeds the system roles and the bootstrap
administrator, then starts the quotation expiry job.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from evm_dealer.api.api_v1.api import api_router
from evm_dealer.core.config import settings
from evm_dealer.core.logging_config import setup_logging, get_logger
from evm_dealer.db.init_db import init_db
from evm_dealer.services.scheduler import init_scheduler, shutdown_scheduler

setup_logging(settings.LOG_LEVEL, settings.LOG_DIR if settings.LOG_TO_FILE else None)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    init_scheduler()
    logger.info(f"{settings.PROJECT_NAME} ready, API under {settings.API_V1_STR}")
    try:
        yield
    finally:
        shutdown_scheduler()
        logger.info(f"{settings.PROJECT_NAME} stopped")


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Dealer network, sales, sell-in and after-sales API for an EV manufacturer",
        version="1.0.0",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )

    origins = [str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS]
    if origins:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    application.include_router(api_router, prefix=settings.API_V1_STR)

    @application.get("/", include_in_schema=False)
    async def root():
        return {"name": settings.PROJECT_NAME, "docs": "/docs", "api": settings.API_V1_STR}

    @application.get("/health")
    async def health():
        return {"status": "ok"}

    return application


app = create_app()
