"""Database info schemas."""

from datetime import date

from pydantic import BaseModel, Field


class DatabaseTotals(BaseModel):
    transactions: int
    categories: int
    category_rules: int
    file_balances: int


class DateRange(BaseModel):
    earliest: date | None = None
    latest: date | None = None


class MonthlyCount(BaseModel):
    income: int = 0
    expenses: int = 0
    total: int = 0


class DataConsistency(BaseModel):
    categorized_transactions: int
    uncategorized_transactions: int
    categorized_percentage: float = Field(description="0-100, two decimals")
    unknown_categories: list[str] = Field(
        default_factory=list,
        description="Category texts on transactions that match no defined category",
    )
    orphan_overrides: int = Field(
        0, description="Rows flagged as manual overrides that point at no category"
    )


class DatabaseHealth(BaseModel):
    has_transactions: bool
    has_categories: bool
    has_rules: bool
    consistency: DataConsistency


class DatabaseInfo(BaseModel):
    totals: DatabaseTotals
    date_range: DateRange
    category_distribution: dict[str, int]
    monthly_stats: dict[str, MonthlyCount] = Field(description="Keyed by YYYY-MM")
    transactions_per_month: float
    health: DatabaseHealth
