"""Category management endpoints."""

from fastapi import APIRouter, Depends, status

from pfinance.api.deps import get_category_service
from pfinance.schemas.category import (
    BulkDeleteRequest,
    CategoryBulkUpdate,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
)
from pfinance.schemas.common import BulkResult
from pfinance.services.category import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse], summary="List categories")
async def list_categories(
    service: CategoryService = Depends(get_category_service),
) -> list[CategoryResponse]:
    return [CategoryResponse.model_validate(c) for c in await service.list_categories()]


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_category(
    payload: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    return CategoryResponse.model_validate(await service.create_category(payload))


@router.put(
    "/bulk",
    response_model=BulkResult,
    summary="Update several categories",
    description="Apply the same type/color/active flag to every listed category, all or nothing.",
)
async def bulk_update_categories(
    payload: CategoryBulkUpdate,
    service: CategoryService = Depends(get_category_service),
) -> BulkResult:
    return await service.bulk_update_categories(payload.ids, payload.updates)


@router.delete(
    "/bulk",
    response_model=BulkResult,
    summary="Delete several categories",
    description="Deletes the categories with their rules and clears manual overrides pointing at them.",
)
async def bulk_delete_categories(
    payload: BulkDeleteRequest,
    service: CategoryService = Depends(get_category_service),
) -> BulkResult:
    return await service.bulk_delete_categories(payload.ids)


@router.put("/{category_id}", response_model=CategoryResponse, summary="Update a category")
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    return CategoryResponse.model_validate(await service.update_category(category_id, payload))


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a category",
)
async def delete_category(
    category_id: int,
    service: CategoryService = Depends(get_category_service),
) -> None:
    await service.delete_category(category_id)
