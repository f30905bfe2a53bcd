"""API version 1 routes."""

from fastapi import APIRouter

from pfinance.api.v1 import (
    balance,
    categories,
    categorization,
    category_rules,
    database,
    insights,
    transactions,
)

router = APIRouter(prefix="/api/v1")

# Include routers
router.include_router(transactions.router)
router.include_router(categorization.router)
router.include_router(categories.router)
router.include_router(category_rules.router)
router.include_router(balance.router)
router.include_router(insights.router)
router.include_router(database.router)
