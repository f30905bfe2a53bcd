"""Category rule endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from pfinance.api.deps import get_categorization_service, get_category_service
from pfinance.schemas.category import (
    BulkDeleteRequest,
    RuleBulkUpdate,
    RuleCreate,
    RulePreviewRequest,
    RulePreviewResult,
    RuleResponse,
    RuleUpdate,
)
from pfinance.schemas.common import BulkResult
from pfinance.services.categorization import CategorizationService
from pfinance.services.category import CategoryService

router = APIRouter(prefix="/category-rules", tags=["category-rules"])


@router.get(
    "",
    response_model=list[RuleResponse],
    summary="List rules in evaluation order",
)
async def list_rules(
    category_id: Annotated[int | None, Query(description="Only rules of this category")] = None,
    service: CategoryService = Depends(get_category_service),
) -> list[RuleResponse]:
    return [RuleResponse.from_model(r) for r in await service.list_rules(category_id)]


@router.post(
    "",
    response_model=RuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a rule",
    description="""
    Match types: `contains`, `starts_with`, `ends_with` (accent- and
    case-insensitive) and `regex` (case-insensitive search). Lower
    `priority` numbers are evaluated first.
    """,
)
async def create_rule(
    payload: RuleCreate,
    service: CategoryService = Depends(get_category_service),
) -> RuleResponse:
    return RuleResponse.from_model(await service.create_rule(payload))


@router.post(
    "/preview",
    response_model=RulePreviewResult,
    summary="Preview categorization of sample descriptions",
)
async def preview_rules(
    payload: RulePreviewRequest,
    service: CategorizationService = Depends(get_categorization_service),
) -> RulePreviewResult:
    return await service.preview(payload.descriptions, payload.candidate)


@router.put("/bulk", response_model=BulkResult, summary="Update several rules")
async def bulk_update_rules(
    payload: RuleBulkUpdate,
    service: CategoryService = Depends(get_category_service),
) -> BulkResult:
    return await service.bulk_update_rules(payload.ids, payload.updates)


@router.delete("/bulk", response_model=BulkResult, summary="Delete several rules")
async def bulk_delete_rules(
    payload: BulkDeleteRequest,
    service: CategoryService = Depends(get_category_service),
) -> BulkResult:
    return await service.bulk_delete_rules(payload.ids)


@router.put("/{rule_id}", response_model=RuleResponse, summary="Update a rule")
async def update_rule(
    rule_id: int,
    payload: RuleUpdate,
    service: CategoryService = Depends(get_category_service),
) -> RuleResponse:
    return RuleResponse.from_model(await service.update_rule(rule_id, payload))


@router.delete(
    "/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a rule",
)
async def delete_rule(
    rule_id: int,
    service: CategoryService = Depends(get_category_service),
) -> None:
    await service.delete_rule(rule_id)
