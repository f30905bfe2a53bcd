"""Transaction repository with filtering and aggregation queries."""
from datetime import date

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.models.transaction import Transaction
from pfinance.repositories.base import BaseRepository
from pfinance.schemas.transaction import TransactionFilters


def apply_filters(query, filters: TransactionFilters | None):
    """Narrow a transaction query (select or delete) by the given filters."""
    if filters is None:
        return query
    if filters.categories:
        query = query.where(Transaction.category.in_(filters.categories))
    if filters.date_from:
        query = query.where(Transaction.txn_date >= filters.date_from)
    if filters.date_to:
        query = query.where(Transaction.txn_date <= filters.date_to)
    if filters.type is not None:
        query = query.where(Transaction.type == filters.type)
    if filters.amount_min is not None:
        query = query.where(Transaction.amount >= filters.amount_min)
    if filters.amount_max is not None:
        query = query.where(Transaction.amount <= filters.amount_max)
    if filters.description:
        query = query.where(Transaction.description.ilike(f"%{filters.description}%"))
    return query


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model with filtering and analytics queries."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Transaction)

    async def get_all(self, skip: int = 0, limit: int | None = None) -> list[Transaction]:
        """Get all transactions, newest first."""
        query = (
            select(Transaction)
            .order_by(Transaction.txn_date.desc(), Transaction.id)
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def search(
        self, filters: TransactionFilters | None, skip: int = 0, limit: int | None = None
    ) -> tuple[list[Transaction], int]:
        """Get filtered transactions (newest first) and the total match count."""
        query = apply_filters(select(Transaction), filters)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(Transaction.txn_date.desc(), Transaction.id).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), int(total)

    async def get_since(self, start: date | None) -> list[Transaction]:
        """Get transactions dated on or after ``start`` (all when None)."""
        query = select(Transaction)
        if start is not None:
            query = query.where(Transaction.txn_date >= start)
        result = await self.db.execute(query.order_by(Transaction.txn_date.asc()))
        return list(result.scalars().all())

    async def get_by_ids(self, transaction_ids: list[str]) -> list[Transaction]:
        if not transaction_ids:
            return []
        result = await self.db.execute(
            select(Transaction).where(Transaction.id.in_(transaction_ids))
        )
        return list(result.scalars().all())

    async def get_by_descriptions(self, descriptions: list[str]) -> list[Transaction]:
        result = await self.db.execute(
            select(Transaction).where(Transaction.description.in_(descriptions))
        )
        return list(result.scalars().all())

    async def get_existing_hashes(self, hashes: list[str]) -> set[str]:
        if not hashes:
            return set()
        result = await self.db.execute(select(Transaction.hash).where(Transaction.hash.in_(hashes)))
        return set(result.scalars().all())

    async def update_category(self, transaction_id: str, category: str) -> bool:
        """Set the resolved category of one transaction. Does not commit."""
        result = await self.db.execute(
            update(Transaction)
            .where(Transaction.id == transaction_id)
            .values(category=category)
        )
        return bool(result.rowcount)

    async def delete_by_ids(self, transaction_ids: list[str]) -> int:
        """Delete transactions by id. Does not commit."""
        result = await self.db.execute(
            delete(Transaction).where(Transaction.id.in_(transaction_ids))
        )
        return int(result.rowcount or 0)

    async def delete_by_filters(self, filters: TransactionFilters) -> int:
        """Delete every transaction matching the filters. Does not commit."""
        query = apply_filters(delete(Transaction), filters)
        result = await self.db.execute(query.execution_options(synchronize_session=False))
        return int(result.rowcount or 0)

    async def clear_all(self) -> int:
        """Delete every transaction. Does not commit."""
        result = await self.db.execute(delete(Transaction))
        return int(result.rowcount or 0)

    async def get_totals(self) -> dict[str, int]:
        """Aggregate income, expenses and count over all transactions."""
        result = await self.db.execute(
            select(Transaction.type, func.sum(Transaction.amount), func.count(Transaction.id))
            .group_by(Transaction.type)
        )
        totals = {"income": 0, "expense": 0, "count": 0}
        for txn_type, amount, count in result:
            totals[txn_type] = int(amount or 0)
            totals["count"] += int(count or 0)
        return totals

    async def get_expense_by_category(self, fallback: str) -> dict[str, int]:
        """
        Aggregate expense totals by category.
        Returns dict of {category: total_amount}.
        """
        result = await self.db.execute(
            select(Transaction.category, func.sum(Transaction.amount).label("total"))
            .where(Transaction.type == "expense")
            .group_by(Transaction.category)
        )
        breakdown: dict[str, int] = {}
        for row in result:
            key = row.category or fallback
            breakdown[key] = breakdown.get(key, 0) + int(row.total or 0)
        return breakdown

    async def get_date_range(self) -> tuple[date | None, date | None]:
        """Earliest and latest transaction dates (None when empty)."""
        result = await self.db.execute(
            select(func.min(Transaction.txn_date), func.max(Transaction.txn_date))
        )
        earliest, latest = result.one()
        return earliest, latest

    async def count_by_category(self) -> dict[str | None, int]:
        """Count transactions per stored category text (None for uncategorized)."""
        result = await self.db.execute(
            select(Transaction.category, func.count(Transaction.id)).group_by(Transaction.category)
        )
        return {category: int(count) for category, count in result}

    async def count_by_month(self) -> list[tuple[str, str, int]]:
        """Count transactions per (YYYY-MM, type), oldest month first."""
        month = func.strftime("%Y-%m", Transaction.txn_date).label("month")
        result = await self.db.execute(
            select(month, Transaction.type, func.count(Transaction.id))
            .group_by(month, Transaction.type)
            .order_by(month, Transaction.type)
        )
        return [(m, t, int(c)) for m, t, c in result]

    async def count_orphan_overrides(self) -> int:
        """Count rows flagged as overridden but pointing at no category."""
        result = await self.db.execute(
            select(func.count(Transaction.id)).where(
                Transaction.is_manual_override.is_(True),
                Transaction.manual_category_id.is_(None),
            )
        )
        return int(result.scalar() or 0)
