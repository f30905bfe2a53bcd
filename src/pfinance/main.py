from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from pfinance.api.middleware.error_handler import (
    handle_finance_error,
    handle_generic_error,
    handle_integrity_error,
    handle_validation_error,
)
from pfinance.api.middleware.logging import RequestLoggingMiddleware
from pfinance.api.v1 import router as v1_router
from pfinance.api.v1.health import router as health_router
from pfinance.config import settings
from pfinance.core.exceptions import FinanceError
from pfinance.core.logging import setup_logging
from pfinance.core.rate_limit import FixedWindowRateLimiter
from pfinance.db.init import init_db
from pfinance.db.session import AsyncSessionLocal, async_engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.log_level, json_format=settings.log_json)
    await init_db(async_engine, AsyncSessionLocal)
    yield
    # Shutdown
    await async_engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Personal Finance Dashboard API",
        description="Transaction categorization and balance reconciliation",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.insight_rate_limiter = FixedWindowRateLimiter(
        settings.ai_rate_limit_max, settings.ai_rate_limit_window_seconds
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(FinanceError, handle_finance_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_generic_error)

    # Register routers
    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run("pfinance.main:app", host=settings.host, port=settings.port)
