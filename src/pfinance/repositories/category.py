"""Category and category rule repositories."""
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.models.category import Category
from pfinance.models.category_rule import CategoryRule
from pfinance.models.transaction import Transaction
from pfinance.repositories.base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Category)

    async def get_all(self, skip: int = 0, limit: int | None = None) -> list[Category]:
        """Get all categories ordered by name."""
        query = select(Category).order_by(Category.name).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_by_name(self, name: str) -> Category | None:
        result = await self.db.execute(select(Category).where(Category.name == name))
        return result.scalar_one_or_none()

    async def get_by_ids(self, ids: list[int]) -> list[Category]:
        result = await self.db.execute(select(Category).where(Category.id.in_(ids)))
        return list(result.scalars().all())

    async def get_active_names(self) -> dict[int, str]:
        """Map active category id -> name."""
        result = await self.db.execute(
            select(Category.id, Category.name).where(Category.is_active.is_(True))
        )
        return {row.id: row.name for row in result}

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(Category.id)))
        return int(result.scalar() or 0)

    async def delete_many(self, ids: list[int]) -> int:
        """Delete categories, their rules and the overrides pointing at them.

        Does not commit; callers own the transaction.
        """
        await self.db.execute(
            update(Transaction)
            .where(Transaction.manual_category_id.in_(ids))
            .values(manual_category_id=None, is_manual_override=False)
        )
        await self.db.execute(delete(CategoryRule).where(CategoryRule.category_id.in_(ids)))
        result = await self.db.execute(delete(Category).where(Category.id.in_(ids)))
        return int(result.rowcount or 0)

    async def update_many(self, ids: list[int], values: dict) -> int:
        """Apply the same field values to several categories. Does not commit."""
        result = await self.db.execute(
            update(Category).where(Category.id.in_(ids)).values(**values)
        )
        return int(result.rowcount or 0)


class CategoryRuleRepository(BaseRepository[CategoryRule]):
    """Repository for CategoryRule model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, CategoryRule)

    async def get_all(self, skip: int = 0, limit: int | None = None) -> list[CategoryRule]:
        """Get all rules in evaluation order."""
        query = (
            select(CategoryRule)
            .order_by(CategoryRule.priority.asc(), CategoryRule.id.asc())
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().unique().all())

    async def get_active_rules(self) -> list[CategoryRule]:
        """Get enabled rules of active categories in evaluation order."""
        result = await self.db.execute(
            select(CategoryRule)
            .join(Category, CategoryRule.category_id == Category.id)
            .where(CategoryRule.enabled.is_(True), Category.is_active.is_(True))
            .order_by(CategoryRule.priority.asc(), CategoryRule.id.asc())
        )
        return list(result.scalars().unique().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(CategoryRule.id)))
        return int(result.scalar() or 0)

    async def get_by_category(self, category_id: int) -> list[CategoryRule]:
        result = await self.db.execute(
            select(CategoryRule)
            .where(CategoryRule.category_id == category_id)
            .order_by(CategoryRule.priority.asc(), CategoryRule.id.asc())
        )
        return list(result.scalars().unique().all())

    async def delete_many(self, ids: list[int]) -> int:
        """Delete several rules. Does not commit."""
        result = await self.db.execute(delete(CategoryRule).where(CategoryRule.id.in_(ids)))
        return int(result.rowcount or 0)

    async def update_many(self, ids: list[int], values: dict) -> int:
        """Apply the same field values to several rules. Does not commit."""
        result = await self.db.execute(
            update(CategoryRule).where(CategoryRule.id.in_(ids)).values(**values)
        )
        return int(result.rowcount or 0)
