"""Bulk recategorization endpoint."""

from fastapi import APIRouter, Depends

from pfinance.api.deps import get_categorization_service
from pfinance.schemas.transaction import RecategorizeResult
from pfinance.services.categorization import CategorizationService

router = APIRouter(tags=["categorization"])


@router.post(
    "/recategorize",
    response_model=RecategorizeResult,
    summary="Re-apply category rules to every transaction",
    description="""
    Runs the current rules over every stored transaction. Transactions with a
    manual category are left alone. All changes are saved together or not at
    all; rules that fail to compile are skipped and listed in `rule_errors`.
    """,
)
async def recategorize_all(
    service: CategorizationService = Depends(get_categorization_service),
) -> RecategorizeResult:
    return await service.recategorize_all()
