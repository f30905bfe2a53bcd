"""Balance, reconciliation and audit schemas."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from pfinance.schemas.common import MoneyMeta

DEFAULT_OVERRIDE_NOTE = "Correzione manuale utente"


class FileBalanceResponse(BaseModel):
    id: int
    balance: int = Field(description="Statement balance in minor units")
    file_name: str
    balance_date: date | None = None
    is_selected: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FileBalanceListResult(BaseModel):
    file_balances: list[FileBalanceResponse]
    money: MoneyMeta


class BalanceStatus(BaseModel):
    """Current live balance and the active baseline."""

    balance: int = Field(description="Live account balance in minor units")
    source: str = Field(description="What last set the balance")
    selected_file_balance: FileBalanceResponse | None = None
    file_balance_count: int
    updated_at: datetime | None = None
    money: MoneyMeta


class SelectBalanceRequest(BaseModel):
    file_balance_id: int


class BalanceOverrideRequest(BaseModel):
    balance: int = Field(description="New balance in minor units")
    notes: str | None = Field(None, max_length=500)


class BalanceChangeResult(BaseModel):
    old_balance: int | None
    new_balance: int
    change_reason: str
    audit_entry_id: int
    money: MoneyMeta


class ValidationResult(BaseModel):
    """Reconciliation report for the active baseline."""

    has_baseline: bool
    base_balance: int
    base_date: date | None = None
    file_source: str | None = None
    calculated_balance: int
    live_balance: int | None = None
    difference: int
    threshold: int
    is_within_threshold: bool
    has_alert: bool
    alert_level: Literal["medium", "high"] | None = None
    alert_message: str | None = None
    transactions_considered: int
    money: MoneyMeta


class AuditEntryResponse(BaseModel):
    id: int
    old_balance: int | None = None
    new_balance: int
    change_reason: str
    notes: str | None = None
    file_balance_id: int | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogResult(BaseModel):
    entries: list[AuditEntryResponse]
    money: MoneyMeta


class ResetResult(BaseModel):
    balance: int
    file_balances_removed: int
    money: MoneyMeta
