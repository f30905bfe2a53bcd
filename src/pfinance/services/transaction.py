"""Transaction import, listing, summaries and deletion."""

import hashlib
import logging
import re

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.config import settings
from pfinance.core.exceptions import PersistenceError
from pfinance.models.transaction import Transaction
from pfinance.repositories.balance import BalanceRepository
from pfinance.repositories.transaction import TransactionRepository
from pfinance.schemas.common import MoneyMeta, PaginationMeta
from pfinance.schemas.transaction import (
    CategoryBreakdown,
    DeleteByFilters,
    DeleteByIds,
    DeletePreviewResult,
    DeleteResult,
    TransactionFilters,
    TransactionImportRequest,
    TransactionImportResult,
    TransactionImportRow,
    TransactionListResult,
    TransactionResponse,
    TransactionSummary,
    TransactionTotals,
)
from pfinance.services.balance import BalanceService
from pfinance.services.categorization import CategorizationService

logger = logging.getLogger(__name__)

DELETE_PREVIEW_LIMIT = 100


def transaction_hash(row: TransactionImportRow) -> str:
    """Stable dedupe key: date, amount, type and whitespace-normalized description."""
    description = re.sub(r"\s+", " ", row.description.strip().lower())
    key = f"{row.txn_date.isoformat()}|{row.amount}|{row.type}|{description}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


class TransactionService:
    """Service layer for transaction operations."""

    def __init__(self, db: AsyncSession):
        """Initialize transaction service with database session.

        Args:
            db: Database session
        """
        self.db = db
        self.txn_repo = TransactionRepository(db)
        self.balance_repo = BalanceRepository(db)
        self.categorization = CategorizationService(db)
        self.balances = BalanceService(db)

    @staticmethod
    def _money() -> MoneyMeta:
        return MoneyMeta(currency=settings.currency, minor_unit=settings.currency_minor_unit)

    async def import_transactions(self, request: TransactionImportRequest) -> TransactionImportResult:
        """Store parsed statement rows, skipping ones already imported.

        New rows are categorized by the current rules. When the request carries
        a statement balance it is registered in the same database transaction.

        Returns:
            Counts of imported and duplicate rows, plus the registered balance

        Raises:
            PersistenceError: If the write fails (nothing is stored)
        """
        keyed = [(transaction_hash(row), row) for row in request.transactions]
        existing = await self.txn_repo.get_existing_hashes([h for h, _ in keyed])

        seen: set[str] = set(existing)
        new_transactions: list[Transaction] = []
        for txn_hash, row in keyed:
            if txn_hash in seen:
                continue
            seen.add(txn_hash)
            new_transactions.append(
                Transaction(
                    txn_date=row.txn_date,
                    value_date=row.value_date,
                    amount=row.amount,
                    description=row.description,
                    type=row.type,
                    balance=row.balance,
                    operation_type=row.operation_type,
                    hash=txn_hash,
                )
            )

        await self.categorization.categorize_new(new_transactions)

        file_balance_id = None
        selected = False
        try:
            self.db.add_all(new_transactions)
            await self.db.flush()
            if request.statement_balance is not None:
                sb = request.statement_balance
                file_balance, selected = await self.balances.stage_file_balance(
                    sb.balance, sb.file_name, sb.balance_date
                )
                file_balance_id = file_balance.id
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Import rolled back", extra={"error_type": type(e).__name__})
            raise PersistenceError("DB_001", {"operation": "import_transactions"}) from e

        duplicates = len(keyed) - len(new_transactions)
        logger.info(
            "Transactions imported",
            extra={"imported": len(new_transactions), "duplicates": duplicates},
        )
        return TransactionImportResult(
            imported=len(new_transactions),
            duplicates=duplicates,
            file_balance_id=file_balance_id,
            file_balance_selected=selected,
        )

    async def list_transactions(
        self, filters: TransactionFilters, page: int = 1, limit: int = 50
    ) -> TransactionListResult:
        offset = (page - 1) * limit
        rows, total = await self.txn_repo.search(filters, skip=offset, limit=limit)
        total_pages = (total + limit - 1) // limit if total > 0 else 0
        return TransactionListResult(
            transactions=[TransactionResponse.model_validate(t) for t in rows],
            pagination=PaginationMeta(page=page, limit=limit, total=total, total_pages=total_pages),
            money=self._money(),
        )

    async def get_summary(self) -> TransactionSummary:
        """Totals, expense breakdown by category and the live balance."""
        totals = await self.txn_repo.get_totals()
        breakdown = await self.txn_repo.get_expense_by_category(settings.fallback_category)
        account = await self.balance_repo.get_account_balance()

        return TransactionSummary(
            totals=TransactionTotals(
                income=totals["income"],
                expenses=totals["expense"],
                net=totals["income"] - totals["expense"],
                count=totals["count"],
            ),
            by_category=[
                CategoryBreakdown(category=name, total=total)
                for name, total in sorted(breakdown.items(), key=lambda kv: kv[1], reverse=True)
            ],
            account_balance=(
                account.balance if account is not None else settings.default_account_balance
            ),
            money=self._money(),
        )

    async def delete(self, request: DeleteByIds | DeleteByFilters) -> DeleteResult:
        """Delete transactions by id list or by filters, in one transaction."""
        try:
            if isinstance(request, DeleteByIds):
                deleted = await self.txn_repo.delete_by_ids(request.ids)
            else:
                deleted = await self.txn_repo.delete_by_filters(request.filters)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("DB_001", {"operation": "delete_transactions"}) from e

        logger.info("Transactions deleted", extra={"mode": request.mode, "deleted": deleted})
        return DeleteResult(deleted=deleted)

    async def preview_delete(self, filters: TransactionFilters) -> DeletePreviewResult:
        rows, total = await self.txn_repo.search(filters, limit=DELETE_PREVIEW_LIMIT)
        return DeletePreviewResult(
            total=total,
            transactions=[TransactionResponse.model_validate(t) for t in rows],
            money=self._money(),
        )

    async def clear_all(self) -> DeleteResult:
        try:
            deleted = await self.txn_repo.clear_all()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("DB_001", {"operation": "clear_transactions"}) from e

        logger.info("All transactions cleared", extra={"deleted": deleted})
        return DeleteResult(deleted=deleted)
