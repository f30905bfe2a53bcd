"""Integration tests for repository layer."""

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.models import (
    BalanceAuditLog,
    Category,
    CategoryRule,
    ChatMessage,
    FileBalance,
    Transaction,
)
from pfinance.repositories.balance import BalanceRepository
from pfinance.repositories.category import CategoryRepository, CategoryRuleRepository
from pfinance.repositories.chat import ChatRepository
from pfinance.repositories.transaction import TransactionRepository
from pfinance.schemas.transaction import TransactionFilters


def make_txn(description: str, amount: int, type_: str = "expense", day: int = 1, **kw) -> Transaction:
    return Transaction(
        txn_date=date(2024, 3, day),
        amount=amount,
        description=description,
        type=type_,
        hash=f"{description}-{amount}-{day}",
        **kw,
    )


@pytest.fixture
async def categories(db_session: AsyncSession) -> dict[str, Category]:
    cats = {
        "Alimenti": Category(name="Alimenti", type="expense"),
        "Casa": Category(name="Casa", type="expense"),
        "Vecchia": Category(name="Vecchia", type="expense", is_active=False),
    }
    db_session.add_all(cats.values())
    await db_session.commit()
    return cats


class TestCategoryRuleRepository:
    @pytest.mark.asyncio
    async def test_get_active_rules_filters_and_orders(self, db_session, categories):
        db_session.add_all(
            [
                CategoryRule(category_id=categories["Alimenti"].id, pattern="conad", priority=10),
                CategoryRule(category_id=categories["Casa"].id, pattern="mutuo", priority=5),
                CategoryRule(category_id=categories["Casa"].id, pattern="off", enabled=False),
                CategoryRule(category_id=categories["Vecchia"].id, pattern="old", priority=1),
                CategoryRule(category_id=categories["Alimenti"].id, pattern="lidl", priority=5),
            ]
        )
        await db_session.commit()

        rules = await CategoryRuleRepository(db_session).get_active_rules()

        assert [r.pattern for r in rules] == ["mutuo", "lidl", "conad"]
        assert rules[0].category.name == "Casa"


class TestCategoryRepository:
    @pytest.mark.asyncio
    async def test_delete_many_removes_rules_and_clears_overrides(self, db_session, categories):
        casa = categories["Casa"]
        db_session.add(CategoryRule(category_id=casa.id, pattern="mutuo"))
        txn = make_txn("RATA MUTUO", 50000, manual_category_id=casa.id, is_manual_override=True)
        db_session.add(txn)
        await db_session.commit()

        repo = CategoryRepository(db_session)
        deleted = await repo.delete_many([casa.id])
        await db_session.commit()

        assert deleted == 1
        assert await repo.get_by_name("Casa") is None
        remaining = (await db_session.execute(select(CategoryRule))).scalars().all()
        assert remaining == []
        await db_session.refresh(txn)
        assert txn.is_manual_override is False
        assert txn.manual_category_id is None

    @pytest.mark.asyncio
    async def test_get_active_names(self, db_session, categories):
        names = await CategoryRepository(db_session).get_active_names()
        assert set(names.values()) == {"Alimenti", "Casa"}


class TestTransactionRepository:
    @pytest.mark.asyncio
    async def test_update_category(self, db_session):
        txn = make_txn("CONAD", 1000)
        db_session.add(txn)
        await db_session.commit()

        repo = TransactionRepository(db_session)
        assert await repo.update_category(txn.id, "Alimenti") is True
        assert await repo.update_category("missing", "Alimenti") is False
        await db_session.commit()

        await db_session.refresh(txn)
        assert txn.category == "Alimenti"

    @pytest.mark.asyncio
    async def test_search_with_filters_and_totals(self, db_session):
        db_session.add_all(
            [
                make_txn("CONAD", 2000, day=1, category="Alimenti"),
                make_txn("LIDL", 3000, day=5, category="Alimenti"),
                make_txn("STIPENDIO", 250000, "income", day=10, category="Stipendio"),
                make_txn("ENEL", 8000, day=15, category="Utenze"),
            ]
        )
        await db_session.commit()
        repo = TransactionRepository(db_session)

        rows, total = await repo.search(
            TransactionFilters(categories=["Alimenti"], date_from=date(2024, 3, 2))
        )
        assert total == 1
        assert rows[0].description == "LIDL"

        rows, total = await repo.search(TransactionFilters(description="ene"), limit=10)
        assert [r.description for r in rows] == ["ENEL"]

        rows, total = await repo.search(None, skip=0, limit=2)
        assert total == 4
        assert [r.description for r in rows] == ["ENEL", "STIPENDIO"]

        totals = await repo.get_totals()
        assert totals == {"income": 250000, "expense": 13000, "count": 4}

        breakdown = await repo.get_expense_by_category("Altro")
        assert breakdown == {"Alimenti": 5000, "Utenze": 8000}

    @pytest.mark.asyncio
    async def test_delete_by_filters(self, db_session):
        db_session.add_all([make_txn("A", 100, day=1), make_txn("B", 200, day=20)])
        await db_session.commit()
        repo = TransactionRepository(db_session)

        deleted = await repo.delete_by_filters(TransactionFilters(date_to=date(2024, 3, 10)))
        await db_session.commit()

        assert deleted == 1
        assert [t.description for t in await repo.get_all()] == ["B"]


class TestBalanceRepository:
    @pytest.mark.asyncio
    async def test_set_active_keeps_a_single_selection(self, db_session):
        repo = BalanceRepository(db_session)
        first = await repo.add(FileBalance(balance=100, file_name="a.xlsx", is_selected=True))
        second = await repo.add(FileBalance(balance=200, file_name="b.xlsx"))
        await db_session.commit()

        selected = await repo.set_active(second.id)
        await db_session.commit()

        assert selected.id == second.id
        await db_session.refresh(first)
        assert first.is_selected is False
        assert (await repo.get_selected()).id == second.id

    @pytest.mark.asyncio
    async def test_set_active_unknown_id_changes_nothing(self, db_session):
        repo = BalanceRepository(db_session)
        fb = await repo.add(FileBalance(balance=100, file_name="a.xlsx", is_selected=True))
        await db_session.commit()

        assert await repo.set_active(999) is None
        assert (await repo.get_selected()).id == fb.id

    @pytest.mark.asyncio
    async def test_reset_all_and_account_balance_upsert(self, db_session):
        repo = BalanceRepository(db_session)
        fb = await repo.add(FileBalance(balance=100, file_name="a.xlsx"))
        await repo.append_audit_entry(
            BalanceAuditLog(new_balance=100, change_reason="file_selection", file_balance_id=fb.id)
        )
        await repo.set_account_balance(100, "file_selection")
        await db_session.commit()

        await repo.reset_all()
        account = await repo.set_account_balance(5, "reset")
        await db_session.commit()

        assert await repo.get_file_balances() == []
        assert await repo.get_audit_log() == []
        assert account.id == 1
        assert (await repo.get_account_balance()).balance == 5


class TestTransactionStats:
    @pytest.mark.asyncio
    async def test_empty_table(self, db_session):
        repo = TransactionRepository(db_session)
        assert await repo.get_date_range() == (None, None)
        assert await repo.count_by_category() == {}
        assert await repo.count_by_month() == []

    @pytest.mark.asyncio
    async def test_ranges_and_counts(self, db_session):
        db_session.add_all(
            [
                make_txn("CONAD", 1000, day=3, category="Alimenti"),
                make_txn("LIDL", 2000, day=20, category="Alimenti"),
                make_txn("STIPENDIO", 250000, "income", day=5),
                Transaction(
                    txn_date=date(2024, 4, 2),
                    amount=500,
                    description="ENEL",
                    type="expense",
                    hash="enel-april",
                    is_manual_override=True,
                ),
            ]
        )
        await db_session.commit()
        repo = TransactionRepository(db_session)

        assert await repo.get_date_range() == (date(2024, 3, 3), date(2024, 4, 2))
        assert await repo.count_by_category() == {"Alimenti": 2, None: 2}
        assert await repo.count_by_month() == [
            ("2024-03", "expense", 2),
            ("2024-03", "income", 1),
            ("2024-04", "expense", 1),
        ]
        assert await repo.count_orphan_overrides() == 1


class TestChatRepository:
    @pytest.mark.asyncio
    async def test_history_is_latest_messages_oldest_first(self, db_session):
        repo = ChatRepository(db_session)
        for i in range(5):
            await repo.add(ChatMessage(session_id="s1", role="user", content=f"m{i}"))
        await repo.add(ChatMessage(session_id="s2", role="user", content="other"))
        await db_session.commit()

        history = await repo.get_history("s1", limit=3)

        assert [m.content for m in history] == ["m2", "m3", "m4"]

    @pytest.mark.asyncio
    async def test_clear_only_touches_one_session(self, db_session):
        repo = ChatRepository(db_session)
        await repo.add(ChatMessage(session_id="s1", role="user", content="a"))
        await repo.add(ChatMessage(session_id="s2", role="user", content="b"))

        assert await repo.clear("s1") == 1
        await db_session.commit()

        assert await repo.get_history("s1", limit=10) == []
        assert len(await repo.get_history("s2", limit=10)) == 1
