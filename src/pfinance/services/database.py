"""Database statistics and consistency checks."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.repositories.balance import BalanceRepository
from pfinance.repositories.category import CategoryRepository, CategoryRuleRepository
from pfinance.repositories.transaction import TransactionRepository
from pfinance.schemas.database import (
    DatabaseHealth,
    DatabaseInfo,
    DatabaseTotals,
    DataConsistency,
    DateRange,
    MonthlyCount,
)

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"


class DatabaseService:
    """Read-only overview of what is stored."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.txn_repo = TransactionRepository(db)
        self.category_repo = CategoryRepository(db)
        self.rule_repo = CategoryRuleRepository(db)
        self.balance_repo = BalanceRepository(db)

    async def get_info(self) -> DatabaseInfo:
        """Collect totals, date range, distributions and consistency checks."""
        totals = await self.txn_repo.get_totals()
        transaction_count = totals["count"]
        category_count = await self.category_repo.count()
        rule_count = await self.rule_repo.count()
        earliest, latest = await self.txn_repo.get_date_range()

        distribution: dict[str, int] = {}
        uncategorized = 0
        for category, count in (await self.txn_repo.count_by_category()).items():
            if not category or not category.strip():
                uncategorized += count
                continue
            distribution[category] = count
        if uncategorized:
            distribution[UNCATEGORIZED] = uncategorized

        known = {c.name for c in await self.category_repo.get_all()}
        unknown = sorted(name for name in distribution if name != UNCATEGORIZED and name not in known)

        monthly: dict[str, MonthlyCount] = {}
        for month, txn_type, count in await self.txn_repo.count_by_month():
            stats = monthly.setdefault(month, MonthlyCount())
            if txn_type == "income":
                stats.income += count
            else:
                stats.expenses += count
            stats.total += count

        categorized = transaction_count - uncategorized
        percentage = round(categorized / transaction_count * 100, 2) if transaction_count else 0.0
        per_month = round(transaction_count / len(monthly), 2) if monthly else 0.0

        info = DatabaseInfo(
            totals=DatabaseTotals(
                transactions=transaction_count,
                categories=category_count,
                category_rules=rule_count,
                file_balances=await self.balance_repo.count_file_balances(),
            ),
            date_range=DateRange(earliest=earliest, latest=latest),
            category_distribution=distribution,
            monthly_stats=monthly,
            transactions_per_month=per_month,
            health=DatabaseHealth(
                has_transactions=transaction_count > 0,
                has_categories=category_count > 0,
                has_rules=rule_count > 0,
                consistency=DataConsistency(
                    categorized_transactions=categorized,
                    uncategorized_transactions=uncategorized,
                    categorized_percentage=percentage,
                    unknown_categories=unknown,
                    orphan_overrides=await self.txn_repo.count_orphan_overrides(),
                ),
            ),
        )
        if unknown or info.health.consistency.orphan_overrides:
            logger.warning(
                "Database consistency issues found",
                extra={
                    "unknown_categories": len(unknown),
                    "orphan_overrides": info.health.consistency.orphan_overrides,
                },
            )
        return info
