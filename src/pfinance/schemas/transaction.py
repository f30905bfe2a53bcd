"""Transaction request/response schemas."""

from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pfinance.schemas.common import MoneyMeta, PaginationMeta

TransactionType = Literal["income", "expense"]


# Filters


class TransactionFilters(BaseModel):
    """Filters shared by list, delete and delete-preview."""

    categories: list[str] | None = Field(None, description="Match any of these categories")
    date_from: date | None = Field(None, description="From date (inclusive)")
    date_to: date | None = Field(None, description="To date (inclusive)")
    type: TransactionType | None = Field(None, description="income or expense")
    amount_min: int | None = Field(None, ge=0, description="Minimum amount (minor units)")
    amount_max: int | None = Field(None, ge=0, description="Maximum amount (minor units)")
    description: str | None = Field(None, description="Case-insensitive description search")

    def is_empty(self) -> bool:
        return not any(
            value not in (None, [], "") for value in self.model_dump().values()
        )


# Import


class TransactionImportRow(BaseModel):
    """A statement row already parsed by the client.

    ``amount`` may be signed; when ``type`` is omitted the sign decides it
    (negative = expense). The stored amount is always the magnitude.
    """

    txn_date: date = Field(description="Booking date")
    value_date: date | None = Field(None, description="Value date")
    amount: int = Field(description="Amount in minor units")
    description: str = Field(min_length=1, max_length=500)
    type: TransactionType | None = None
    balance: int | None = Field(None, description="Running balance after this row")
    operation_type: str | None = Field(None, max_length=100)

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Description cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def resolve_type(self) -> "TransactionImportRow":
        if self.type is None:
            self.type = "expense" if self.amount < 0 else "income"
        self.amount = abs(self.amount)
        return self


class StatementBalance(BaseModel):
    """Closing balance printed on the imported statement."""

    balance: int = Field(description="Balance in minor units")
    file_name: str = Field(min_length=1, max_length=255)
    balance_date: date | None = None


class TransactionImportRequest(BaseModel):
    transactions: list[TransactionImportRow] = Field(min_length=1)
    statement_balance: StatementBalance | None = None


class TransactionImportResult(BaseModel):
    imported: int = Field(description="New transactions stored")
    duplicates: int = Field(description="Rows skipped because they were already stored")
    file_balance_id: int | None = Field(None, description="Registered statement balance")
    file_balance_selected: bool = Field(
        False, description="True if the statement balance became the active baseline"
    )


# Responses


class TransactionResponse(BaseModel):
    """Transaction data for API responses."""

    id: str
    txn_date: date
    value_date: date | None = None
    amount: int = Field(description="Amount magnitude in minor units")
    description: str
    category: str | None = None
    type: TransactionType
    balance: int | None = None
    operation_type: str | None = None
    is_manual_override: bool = False
    manual_category_id: int | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionTotals(BaseModel):
    income: int = 0
    expenses: int = 0
    net: int = 0
    count: int = 0


class TransactionListResult(BaseModel):
    """Paginated list of transactions."""

    transactions: list[TransactionResponse]
    pagination: PaginationMeta
    money: MoneyMeta


class CategoryBreakdown(BaseModel):
    category: str
    total: int = Field(description="Expense total in minor units")


class TransactionSummary(BaseModel):
    totals: TransactionTotals
    by_category: list[CategoryBreakdown]
    account_balance: int
    money: MoneyMeta


# Manual overrides


class SetOverride(BaseModel):
    action: Literal["set"]
    transaction_id: str
    category_id: int


class ClearOverride(BaseModel):
    action: Literal["clear"]
    transaction_id: str


OverrideAction = Annotated[SetOverride | ClearOverride, Field(discriminator="action")]


class BulkOverrideRequest(BaseModel):
    overrides: list[OverrideAction] = Field(min_length=1)


class OverrideResult(BaseModel):
    transaction: TransactionResponse


class CategorizeDescriptionsRequest(BaseModel):
    """Assign one category to every transaction with these descriptions."""

    descriptions: list[str] = Field(min_length=1)
    category_id: int


# Deletion


class DeleteByIds(BaseModel):
    mode: Literal["ids"]
    ids: list[str] = Field(min_length=1)


class DeleteByFilters(BaseModel):
    mode: Literal["filters"]
    filters: TransactionFilters

    @model_validator(mode="after")
    def require_a_filter(self) -> "DeleteByFilters":
        if self.filters.is_empty():
            raise ValueError("At least one filter is required; use DELETE /transactions to clear all")
        return self


DeleteRequest = Annotated[DeleteByIds | DeleteByFilters, Field(discriminator="mode")]


class DeleteResult(BaseModel):
    deleted: int


class DeletePreviewResult(BaseModel):
    total: int = Field(description="Number of transactions the filters match")
    transactions: list[TransactionResponse] = Field(description="First matches (at most 100)")
    money: MoneyMeta


# Recategorization


class RuleErrorResponse(BaseModel):
    rule_id: int
    pattern: str
    error: str


class RecategorizeResult(BaseModel):
    total: int
    updated: int
    unchanged: int
    skipped_manual: int
    resynced_manual: int = Field(
        0, description="Overridden rows whose stored category was rewritten (subset of skipped_manual)"
    )
    failed: int
    rule_errors: list[RuleErrorResponse]
