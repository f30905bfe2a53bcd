"""Transaction endpoints: import, list, summary, manual overrides and deletion."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query

from pfinance.api.deps import get_categorization_service, get_transaction_service
from pfinance.schemas.common import BulkResult
from pfinance.schemas.transaction import (
    BulkOverrideRequest,
    CategorizeDescriptionsRequest,
    ClearOverride,
    DeleteByFilters,
    DeleteByIds,
    DeletePreviewResult,
    DeleteResult,
    OverrideResult,
    SetOverride,
    TransactionFilters,
    TransactionImportRequest,
    TransactionImportResult,
    TransactionListResult,
    TransactionResponse,
    TransactionSummary,
    TransactionType,
)
from pfinance.services.categorization import CategorizationService
from pfinance.services.transaction import TransactionService

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get(
    "",
    response_model=TransactionListResult,
    summary="List transactions with filters",
    description="""
    Query stored transactions, newest first.

    ## Filters
    - **category**: One or more categories (repeat the parameter)
    - **start_date**, **end_date**: Date range filter (inclusive)
    - **min_amount**, **max_amount**: Amount range filter (minor units)
    - **search**: Search descriptions (case-insensitive)
    - **type**: `income` or `expense`
    """,
)
async def list_transactions(
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    limit: Annotated[int, Query(ge=1, le=500, description="Items per page (1-500)")] = 50,
    category: Annotated[list[str] | None, Query(description="Filter by category")] = None,
    start_date: Annotated[date | None, Query(description="Filter from date (inclusive)")] = None,
    end_date: Annotated[date | None, Query(description="Filter to date (inclusive)")] = None,
    min_amount: Annotated[int | None, Query(ge=0, description="Minimum amount in minor units")] = None,
    max_amount: Annotated[int | None, Query(ge=0, description="Maximum amount in minor units")] = None,
    search: Annotated[str | None, Query(description="Search descriptions")] = None,
    txn_type: Annotated[
        TransactionType | None, Query(alias="type", description="income or expense")
    ] = None,
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionListResult:
    filters = TransactionFilters(
        categories=category,
        date_from=start_date,
        date_to=end_date,
        type=txn_type,
        amount_min=min_amount,
        amount_max=max_amount,
        description=search,
    )
    return await service.list_transactions(filters, page=page, limit=limit)


@router.get(
    "/summary",
    response_model=TransactionSummary,
    summary="Get totals and spending by category",
)
async def get_summary(
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionSummary:
    return await service.get_summary()


@router.post(
    "/import",
    response_model=TransactionImportResult,
    status_code=201,
    summary="Import parsed statement rows",
    description="""
    Store rows already parsed from a bank statement. Rows seen before (same
    date, amount, type and description) are skipped. New rows are
    categorized with the current rules.

    When `statement_balance` is given it is registered as a balance snapshot;
    the first snapshot ever registered becomes the active baseline.
    """,
)
async def import_transactions(
    payload: TransactionImportRequest,
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionImportResult:
    return await service.import_transactions(payload)


@router.post(
    "/override",
    response_model=OverrideResult,
    summary="Set or clear a manual category",
    description="""
    `{"action": "set", "transaction_id": ..., "category_id": ...}` pins a
    transaction to a category; rules will no longer change it.

    `{"action": "clear", "transaction_id": ...}` removes the pin and
    re-applies the rules.
    """,
)
async def override_category(
    payload: Annotated[SetOverride | ClearOverride, Body(discriminator="action")],
    service: CategorizationService = Depends(get_categorization_service),
) -> OverrideResult:
    if isinstance(payload, SetOverride):
        txn = await service.set_manual_category(payload.transaction_id, payload.category_id)
    else:
        txn = await service.clear_manual_category(payload.transaction_id)
    return OverrideResult(transaction=TransactionResponse.model_validate(txn))


@router.put(
    "/override",
    response_model=BulkResult,
    summary="Apply many manual overrides at once",
)
async def bulk_override(
    payload: BulkOverrideRequest,
    service: CategorizationService = Depends(get_categorization_service),
) -> BulkResult:
    return await service.apply_overrides(payload.overrides)


@router.post(
    "/categorize",
    response_model=BulkResult,
    summary="Manually categorize transactions by description",
)
async def categorize_by_descriptions(
    payload: CategorizeDescriptionsRequest,
    service: CategorizationService = Depends(get_categorization_service),
) -> BulkResult:
    return await service.categorize_by_descriptions(payload.descriptions, payload.category_id)


@router.post(
    "/delete",
    response_model=DeleteResult,
    summary="Delete transactions by ids or filters",
    description="""
    `{"mode": "ids", "ids": [...]}` deletes the listed transactions.

    `{"mode": "filters", "filters": {...}}` deletes every match; at least one
    filter is required.
    """,
)
async def delete_transactions(
    payload: Annotated[DeleteByIds | DeleteByFilters, Body(discriminator="mode")],
    service: TransactionService = Depends(get_transaction_service),
) -> DeleteResult:
    return await service.delete(payload)


@router.post(
    "/delete/preview",
    response_model=DeletePreviewResult,
    summary="Preview which transactions a filtered delete would remove",
)
async def preview_delete(
    filters: TransactionFilters,
    service: TransactionService = Depends(get_transaction_service),
) -> DeletePreviewResult:
    return await service.preview_delete(filters)


@router.delete(
    "",
    response_model=DeleteResult,
    summary="Delete all transactions",
)
async def clear_transactions(
    service: TransactionService = Depends(get_transaction_service),
) -> DeleteResult:
    return await service.clear_all()
