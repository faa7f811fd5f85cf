"""FastAPI application factory."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from carledger.core.logging import configure_logging, get_logger
from carledger.core.sentry import init_sentry

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup and shutdown events."""
    start_time = datetime.now()
    logger.info("app.startup", message="CarLedger starting up", timestamp=start_time.isoformat())

    from carledger.api.health import set_app_start_time

    set_app_start_time(start_time)

    yield

    logger.info("app.shutdown", message="CarLedger shutting down gracefully")


def _setup_middleware(app: FastAPI) -> None:
    from carledger.middleware.logging import RequestIDMiddleware

    app.add_middleware(RequestIDMiddleware)


def _register_routers(app: FastAPI) -> None:
    from carledger.api.finance_records import router as finance_records_router
    from carledger.api.health import router as health_router
    from carledger.api.reports import router as reports_router
    from carledger.api.sales import router as sales_router

    app.include_router(health_router)
    app.include_router(sales_router)
    app.include_router(finance_records_router)
    app.include_router(reports_router)


def create_app() -> FastAPI:
    """Application factory for CarLedger."""
    init_sentry()

    app = FastAPI(
        title="CarLedger API",
        description="Vehicle sales ledger with cascading daily, monthly and yearly reports",
        version="0.1.0",
        lifespan=lifespan,
    )

    from carledger.core.exception_handlers import register_exception_handlers

    register_exception_handlers(app)
    _setup_middleware(app)
    _register_routers(app)

    logger.info("app.configured", message="FastAPI application created successfully")

    return app


def run() -> None:
    """Development server entrypoint."""
    uvicorn.run(
        "carledger.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
