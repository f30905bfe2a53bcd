"""Balance repository: live balance row, statement snapshots and audit log.

None of these methods commit. Balance writes and their audit entry must land
in the same database transaction, so the service owns the commit.
"""
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.models.balance import AccountBalance, BalanceAuditLog, FileBalance
from pfinance.repositories.base import BaseRepository

ACCOUNT_BALANCE_ID = 1


class BalanceRepository(BaseRepository[FileBalance]):
    """Repository for FileBalance snapshots plus the account balance and audit log."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, FileBalance)

    # Account balance

    async def get_account_balance(self) -> AccountBalance | None:
        result = await self.db.execute(
            select(AccountBalance).where(AccountBalance.id == ACCOUNT_BALANCE_ID)
        )
        return result.scalar_one_or_none()

    async def set_account_balance(self, balance: int, source: str) -> AccountBalance:
        """Upsert the single account balance row."""
        account = await self.get_account_balance()
        if account is None:
            account = AccountBalance(id=ACCOUNT_BALANCE_ID, balance=balance, source=source)
            self.db.add(account)
        else:
            account.balance = balance
            account.source = source
        await self.db.flush()
        return account

    # File balances

    async def get_file_balances(self) -> list[FileBalance]:
        """Get every statement snapshot, newest first."""
        result = await self.db.execute(
            select(FileBalance).order_by(FileBalance.created_at.desc(), FileBalance.id.desc())
        )
        return list(result.scalars().all())

    async def get_selected(self) -> FileBalance | None:
        result = await self.db.execute(
            select(FileBalance).where(FileBalance.is_selected.is_(True)).limit(1)
        )
        return result.scalar_one_or_none()

    async def count_file_balances(self) -> int:
        result = await self.db.execute(select(func.count(FileBalance.id)))
        return int(result.scalar() or 0)

    async def set_active(self, file_balance_id: int) -> FileBalance | None:
        """Mark one snapshot as selected and deselect all others.

        Returns:
            The selected snapshot, or None when the id does not exist (nothing
            is changed in that case).
        """
        file_balance = await self.get_by_id(file_balance_id)
        if file_balance is None:
            return None

        await self.db.execute(
            update(FileBalance)
            .where(FileBalance.id != file_balance_id)
            .values(is_selected=False)
        )
        file_balance.is_selected = True
        await self.db.flush()
        return file_balance

    # Audit log

    async def append_audit_entry(self, entry: BalanceAuditLog) -> BalanceAuditLog:
        return await self.add(entry)

    async def get_audit_log(self, limit: int = 50) -> list[BalanceAuditLog]:
        """Get the most recent audit entries, newest first."""
        result = await self.db.execute(
            select(BalanceAuditLog)
            .order_by(BalanceAuditLog.created_at.desc(), BalanceAuditLog.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def reset_all(self) -> None:
        """Delete every snapshot and audit entry."""
        await self.db.execute(delete(BalanceAuditLog))
        await self.db.execute(delete(FileBalance))
