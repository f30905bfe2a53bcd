"""Schema creation and first-run seed data."""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from pfinance.categorization.defaults import DEFAULT_CATEGORIES, DEFAULT_RULES
from pfinance.db.session import ensure_sqlite_directory
from pfinance.models import Category, CategoryRule
from pfinance.models.base import Base
from pfinance.repositories.category import CategoryRepository
from pfinance.services.balance import BalanceService

logger = logging.getLogger(__name__)


async def create_tables(engine: AsyncEngine) -> None:
    ensure_sqlite_directory(engine.url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_defaults(db: AsyncSession) -> bool:
    """Insert the default categories and rules into an empty database.

    Returns:
        True if anything was seeded
    """
    if await CategoryRepository(db).count() > 0:
        return False

    categories = {
        name: Category(name=name, type=type_, color=color)
        for name, type_, color in DEFAULT_CATEGORIES
    }
    db.add_all(categories.values())
    await db.flush()

    db.add_all(
        CategoryRule(
            category_id=categories[category].id,
            pattern=pattern,
            match_type="contains",
            priority=priority,
        )
        for category, pattern, priority in DEFAULT_RULES
    )
    await db.commit()

    logger.info(
        "Seeded default categories",
        extra={"categories": len(DEFAULT_CATEGORIES), "rules": len(DEFAULT_RULES)},
    )
    return True


async def init_db(engine: AsyncEngine, session_factory: async_sessionmaker) -> None:
    """Create tables, seed defaults and make sure the account balance row exists."""
    await create_tables(engine)
    async with session_factory() as db:
        await seed_defaults(db)
        await BalanceService(db).ensure_account_balance()
