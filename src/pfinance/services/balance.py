"""Balance service: baseline selection, overrides, reconciliation and audit.

Every balance mutation writes the new balance and exactly one audit entry in
the same database transaction. On failure both are rolled back.
"""

import logging
from dataclasses import asdict
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.balance.reconciler import Baseline, Thresholds, ValidationReport, reconcile
from pfinance.config import settings
from pfinance.core.exceptions import NotFoundError, PersistenceError, ValidationError
from pfinance.models.balance import AccountBalance, BalanceAuditLog, FileBalance
from pfinance.repositories.balance import BalanceRepository
from pfinance.repositories.transaction import TransactionRepository
from pfinance.schemas.balance import (
    DEFAULT_OVERRIDE_NOTE,
    AuditEntryResponse,
    AuditLogResult,
    BalanceChangeResult,
    BalanceStatus,
    FileBalanceListResult,
    FileBalanceResponse,
    ResetResult,
    ValidationResult,
)
from pfinance.schemas.common import MoneyMeta

logger = logging.getLogger(__name__)

AUDIT_LIMIT_MIN = 1
AUDIT_LIMIT_MAX = 100


def format_amount(amount: int, minor_unit: int, currency: str) -> str:
    """Render minor units as a human-readable amount, e.g. 5001 -> '50.01 EUR'."""
    sign = "-" if amount < 0 else ""
    if minor_unit <= 0:
        return f"{sign}{abs(amount)} {currency}"
    major, minor = divmod(abs(amount), 10**minor_unit)
    return f"{sign}{major}.{minor:0{minor_unit}d} {currency}"


def alert_message(report: ValidationReport) -> str | None:
    """Describe a reconciliation alert for display."""
    if not report.has_alert:
        return None
    amount = format_amount(report.difference, settings.currency_minor_unit, settings.currency)
    if report.alert_level == "high":
        return f"Large discrepancy of {amount} between calculated and current balance"
    return f"Discrepancy of {amount} between calculated and current balance"


class BalanceService:
    """Service for the live balance, statement baselines and the audit log."""

    def __init__(self, db: AsyncSession, thresholds: Thresholds | None = None):
        """Initialize the service.

        Args:
            db: Database session
            thresholds: Reconciliation limits (defaults from settings)
        """
        self.db = db
        self.balance_repo = BalanceRepository(db)
        self.txn_repo = TransactionRepository(db)
        self.thresholds = thresholds or Thresholds(
            alert=settings.balance_alert_threshold,
            high=settings.balance_high_threshold,
        )

    @staticmethod
    def _money() -> MoneyMeta:
        return MoneyMeta(currency=settings.currency, minor_unit=settings.currency_minor_unit)

    async def _commit(self, operation: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Balance change rolled back",
                extra={"operation": operation, "error_type": type(e).__name__},
            )
            raise PersistenceError("DB_001", {"operation": operation}) from e

    async def _change_balance(
        self,
        new_balance: int,
        source: str,
        reason: str,
        notes: str | None = None,
        file_balance_id: int | None = None,
    ) -> BalanceAuditLog:
        """Stage a balance write plus its audit entry (no commit)."""
        account = await self.balance_repo.get_account_balance()
        old_balance = account.balance if account is not None else None

        await self.balance_repo.set_account_balance(new_balance, source)
        return await self.balance_repo.append_audit_entry(
            BalanceAuditLog(
                old_balance=old_balance,
                new_balance=new_balance,
                change_reason=reason,
                notes=notes,
                file_balance_id=file_balance_id,
            )
        )

    async def ensure_account_balance(self) -> AccountBalance:
        """Create the account balance row with the configured default if missing."""
        account = await self.balance_repo.get_account_balance()
        if account is not None:
            return account

        try:
            await self._change_balance(
                settings.default_account_balance,
                source="default",
                reason="initial_setup",
                notes="Default opening balance",
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("DB_001", {"operation": "ensure_account_balance"}) from e

        logger.info("Account balance initialized")
        return await self.balance_repo.get_account_balance()

    async def get_status(self) -> BalanceStatus:
        account = await self.ensure_account_balance()
        selected = await self.balance_repo.get_selected()
        return BalanceStatus(
            balance=account.balance,
            source=account.source,
            selected_file_balance=(
                FileBalanceResponse.model_validate(selected) if selected else None
            ),
            file_balance_count=await self.balance_repo.count_file_balances(),
            updated_at=account.updated_at,
            money=self._money(),
        )

    async def list_file_balances(self) -> FileBalanceListResult:
        rows = await self.balance_repo.get_file_balances()
        return FileBalanceListResult(
            file_balances=[FileBalanceResponse.model_validate(r) for r in rows],
            money=self._money(),
        )

    async def stage_file_balance(
        self, balance: int, file_name: str, balance_date: date | None = None
    ) -> tuple[FileBalance, bool]:
        """Stage a statement balance snapshot without committing.

        The first snapshot ever registered becomes the active baseline and
        sets the live balance (audited as ``initial_setup``).

        Returns:
            (snapshot, whether it was auto-selected)
        """
        is_first = await self.balance_repo.count_file_balances() == 0
        file_balance = await self.balance_repo.add(
            FileBalance(
                balance=balance,
                file_name=file_name,
                balance_date=balance_date,
                is_selected=False,
            )
        )

        if is_first:
            await self.balance_repo.set_active(file_balance.id)
            await self._change_balance(
                balance,
                source="file_selection",
                reason="initial_setup",
                notes=f"Initial balance from {file_name}",
                file_balance_id=file_balance.id,
            )

        return file_balance, is_first

    async def register_file_balance(
        self, balance: int, file_name: str, balance_date: date | None = None
    ) -> tuple[FileBalance, bool]:
        """Save a statement balance snapshot (see ``stage_file_balance``)."""
        try:
            result = await self.stage_file_balance(balance, file_name, balance_date)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("DB_001", {"operation": "register_file_balance"}) from e
        await self._commit("register_file_balance")
        return result

    async def select_file_balance(self, file_balance_id: int) -> BalanceChangeResult:
        """Make a statement snapshot the active baseline and adopt its balance.

        Raises:
            NotFoundError: If the snapshot does not exist (nothing changes)
            PersistenceError: If the write fails (nothing changes)
        """
        file_balance = await self.balance_repo.get_by_id(file_balance_id)
        if file_balance is None:
            raise NotFoundError("NF_004", {"file_balance_id": file_balance_id})

        try:
            await self.balance_repo.set_active(file_balance_id)
            entry = await self._change_balance(
                file_balance.balance,
                source="file_selection",
                reason="file_selection",
                notes=f"Selected balance from {file_balance.file_name}",
                file_balance_id=file_balance.id,
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("DB_001", {"operation": "select_file_balance"}) from e
        await self._commit("select_file_balance")

        logger.info(
            "File balance selected",
            extra={"file_balance_id": file_balance_id, "audit_entry_id": entry.id},
        )
        return self._change_result(entry)

    async def override_balance(self, balance: int, notes: str | None = None) -> BalanceChangeResult:
        """Set the live balance by hand.

        Raises:
            ValidationError: If the value is outside the accepted range
            PersistenceError: If the write fails (nothing changes)
        """
        if abs(balance) > settings.max_abs_balance:
            raise ValidationError(
                "VAL_002", {"balance": balance, "max_abs": settings.max_abs_balance}
            )

        try:
            entry = await self._change_balance(
                balance,
                source="manual_override",
                reason="manual_override",
                notes=(notes or "").strip() or DEFAULT_OVERRIDE_NOTE,
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("DB_001", {"operation": "override_balance"}) from e
        await self._commit("override_balance")

        logger.info("Balance overridden", extra={"audit_entry_id": entry.id})
        return self._change_result(entry)

    async def validate(self) -> ValidationResult:
        """Reconcile the live balance against the active baseline."""
        selected = await self.balance_repo.get_selected()
        account = await self.balance_repo.get_account_balance()
        live_balance = account.balance if account is not None else None

        if selected is None:
            baseline = None
            transactions = await self.txn_repo.get_since(None)
        else:
            baseline = Baseline(
                balance=selected.balance,
                balance_date=selected.balance_date,
                file_name=selected.file_name,
            )
            transactions = await self.txn_repo.get_since(selected.balance_date)

        report = reconcile(baseline, transactions, live_balance, self.thresholds)
        if report.has_alert:
            logger.warning(
                "Balance discrepancy detected",
                extra={"alert_level": report.alert_level, "difference": report.difference},
            )

        return ValidationResult(
            **asdict(report),
            alert_message=alert_message(report),
            money=self._money(),
        )

    async def get_audit_log(self, limit: int = 50) -> AuditLogResult:
        limit = max(AUDIT_LIMIT_MIN, min(limit, AUDIT_LIMIT_MAX))
        entries = await self.balance_repo.get_audit_log(limit)
        return AuditLogResult(
            entries=[AuditEntryResponse.model_validate(e) for e in entries],
            money=self._money(),
        )

    async def reset(self) -> ResetResult:
        """Wipe snapshots and audit history and restore the default balance.

        The history is replaced by a single ``reset`` audit entry.

        Raises:
            PersistenceError: If the write fails (nothing changes)
        """
        default = settings.default_account_balance
        try:
            removed = await self.balance_repo.count_file_balances()
            await self.balance_repo.reset_all()
            await self._change_balance(
                default,
                source="reset",
                reason="reset",
                notes="Balances reset to default",
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("DB_001", {"operation": "reset"}) from e
        await self._commit("reset")

        logger.info("Balances reset", extra={"file_balances_removed": removed})
        return ResetResult(balance=default, file_balances_removed=removed, money=self._money())

    def _change_result(self, entry: BalanceAuditLog) -> BalanceChangeResult:
        return BalanceChangeResult(
            old_balance=entry.old_balance,
            new_balance=entry.new_balance,
            change_reason=entry.change_reason,
            audit_entry_id=entry.id,
            money=self._money(),
        )
