"""FastAPI dependency injection for database sessions and services.

Every request gets its own session; services and repositories are built on
top of it, so tests can swap the session by overriding ``get_db``.
"""

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.config import settings
from pfinance.core.exceptions import RateLimitExceededError
from pfinance.core.rate_limit import FixedWindowRateLimiter
from pfinance.db.session import get_db
from pfinance.services.balance import BalanceService
from pfinance.services.categorization import CategorizationService
from pfinance.services.category import CategoryService
from pfinance.services.database import DatabaseService
from pfinance.services.insight import InsightService
from pfinance.services.transaction import TransactionService

__all__ = [
    "get_db",
    "get_balance_service",
    "get_categorization_service",
    "get_category_service",
    "get_database_service",
    "get_insight_service",
    "get_rate_limiter",
    "get_session_key",
    "get_transaction_service",
    "enforce_insight_rate_limit",
]

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_transaction_service(db: DbSession) -> TransactionService:
    return TransactionService(db)


async def get_categorization_service(db: DbSession) -> CategorizationService:
    return CategorizationService(db)


async def get_category_service(db: DbSession) -> CategoryService:
    return CategoryService(db)


async def get_balance_service(db: DbSession) -> BalanceService:
    return BalanceService(db)


async def get_database_service(db: DbSession) -> DatabaseService:
    return DatabaseService(db)


async def get_insight_service(db: DbSession) -> InsightService:
    return InsightService(db)


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    """Return the app-wide insight rate limiter (created in ``create_app``)."""
    limiter = getattr(request.app.state, "insight_rate_limiter", None)
    if limiter is None:
        limiter = FixedWindowRateLimiter(
            settings.ai_rate_limit_max, settings.ai_rate_limit_window_seconds
        )
        request.app.state.insight_rate_limiter = limiter
    return limiter


def get_session_key(
    request: Request,
    x_session_id: Annotated[str | None, Header(max_length=128)] = None,
) -> str:
    """Identify the caller by the ``X-Session-ID`` header, else the client address."""
    return x_session_id or (request.client.host if request.client else "anonymous")


SessionKey = Annotated[str, Depends(get_session_key)]


async def enforce_insight_rate_limit(
    key: SessionKey,
    limiter: Annotated[FixedWindowRateLimiter, Depends(get_rate_limiter)],
) -> str:
    """Count one LLM request against the caller's window.

    Raises:
        RateLimitExceededError: If the caller is over budget
    """
    if not limiter.hit(key):
        raise RateLimitExceededError(
            "RATE_001", {"retry_after": int(limiter.window_seconds)}
        )
    return key
