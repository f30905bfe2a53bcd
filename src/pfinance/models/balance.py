"""Balance models: live account balance, statement snapshots and the audit log."""
from datetime import date

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pfinance.models.base import BaseModel

AUDIT_REASONS = ("manual_override", "file_selection", "initial_setup", "reset", "other")
BALANCE_SOURCES = ("default", "file_selection", "manual_override", "reset")


class AccountBalance(BaseModel):
    """Single-row table (id = 1) holding the live account balance."""

    __tablename__ = "account_balance"
    __table_args__ = (CheckConstraint("id = 1", name="ck_account_balance_singleton"),)

    balance: Mapped[int] = mapped_column(BigInteger, nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="default")

    def __repr__(self) -> str:
        return f"<AccountBalance(balance={self.balance}, source={self.source})>"


class FileBalance(BaseModel):
    """Balance snapshot read from an imported statement file."""

    __tablename__ = "file_balances"

    balance: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    balance_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_selected: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    def __repr__(self) -> str:
        return (
            f"<FileBalance(id={self.id}, file_name={self.file_name}, "
            f"balance={self.balance}, selected={self.is_selected})>"
        )


class BalanceAuditLog(BaseModel):
    """Append-only record of every balance change."""

    __tablename__ = "balance_audit_log"
    __table_args__ = (
        CheckConstraint(
            "change_reason IN ('manual_override', 'file_selection', 'initial_setup', 'reset', 'other')",
            name="ck_audit_reason",
        ),
    )

    old_balance: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    new_balance: Mapped[int] = mapped_column(BigInteger, nullable=False)
    change_reason: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Snapshot rows can be wiped by a reset, so keep only a loose reference.
    file_balance_id: Mapped[int | None] = mapped_column(
        ForeignKey("file_balances.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<BalanceAuditLog(id={self.id}, reason={self.change_reason}, "
            f"old={self.old_balance}, new={self.new_balance})>"
        )
