"""Database info endpoint."""

from fastapi import APIRouter, Depends

from pfinance.api.deps import get_database_service
from pfinance.schemas.database import DatabaseInfo
from pfinance.services.database import DatabaseService

router = APIRouter(prefix="/database", tags=["database"])


@router.get(
    "/info",
    response_model=DatabaseInfo,
    summary="Get database statistics",
    description="""
    Totals, transaction date range, per-category and per-month counts and
    data consistency checks (uncategorized rows, category texts that match
    no defined category, overrides that point at no category).
    """,
)
async def get_database_info(
    service: DatabaseService = Depends(get_database_service),
) -> DatabaseInfo:
    return await service.get_info()
