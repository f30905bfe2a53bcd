"""Balance endpoints: live balance, statement baselines, validation and audit."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from pfinance.api.deps import get_balance_service
from pfinance.schemas.balance import (
    AuditLogResult,
    BalanceChangeResult,
    BalanceOverrideRequest,
    BalanceStatus,
    FileBalanceListResult,
    ResetResult,
    SelectBalanceRequest,
    ValidationResult,
)
from pfinance.services.balance import BalanceService

router = APIRouter(prefix="/balance", tags=["balance"])


@router.get("/status", response_model=BalanceStatus, summary="Current balance and baseline")
async def get_status(
    service: BalanceService = Depends(get_balance_service),
) -> BalanceStatus:
    return await service.get_status()


@router.get(
    "/files",
    response_model=FileBalanceListResult,
    summary="List statement balance snapshots",
)
async def list_file_balances(
    service: BalanceService = Depends(get_balance_service),
) -> FileBalanceListResult:
    return await service.list_file_balances()


@router.post(
    "/select",
    response_model=BalanceChangeResult,
    summary="Use a statement snapshot as the baseline",
    description="Sets the live balance to the snapshot's value and records a `file_selection` audit entry.",
)
async def select_file_balance(
    payload: SelectBalanceRequest,
    service: BalanceService = Depends(get_balance_service),
) -> BalanceChangeResult:
    return await service.select_file_balance(payload.file_balance_id)


@router.post(
    "/override",
    response_model=BalanceChangeResult,
    summary="Set the balance by hand",
    description="Records a `manual_override` audit entry. The value must be within ±1,000,000.00.",
)
async def override_balance(
    payload: BalanceOverrideRequest,
    service: BalanceService = Depends(get_balance_service),
) -> BalanceChangeResult:
    return await service.override_balance(payload.balance, payload.notes)


@router.get(
    "/validate",
    response_model=ValidationResult,
    summary="Reconcile the live balance against the baseline",
    description="""
    Calculated balance = baseline + income − expenses since the baseline date.
    A difference above 50.00 raises a `medium` alert, above 200.00 a `high` one.
    """,
)
async def validate_balance(
    service: BalanceService = Depends(get_balance_service),
) -> ValidationResult:
    return await service.validate()


@router.get("/audit", response_model=AuditLogResult, summary="Balance change history")
async def get_audit_log(
    limit: Annotated[int, Query(description="Entries to return (clamped to 1-100)")] = 50,
    service: BalanceService = Depends(get_balance_service),
) -> AuditLogResult:
    return await service.get_audit_log(limit)


@router.post(
    "/reset",
    response_model=ResetResult,
    summary="Reset balances to the default",
    description="Deletes every snapshot and the audit history, then restores the default balance.",
)
async def reset_balances(
    service: BalanceService = Depends(get_balance_service),
) -> ResetResult:
    return await service.reset()
