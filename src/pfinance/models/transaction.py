"""Transaction model representing a single bank statement row."""
from datetime import date
from uuid import uuid4

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from pfinance.models.base import BaseModel


class Transaction(BaseModel):
    """Bank transaction.

    ``amount`` is the unsigned magnitude in minor units; the sign comes from
    ``type`` (income adds, expense subtracts).
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("type IN ('income', 'expense')", name="ck_transaction_type"),
        Index("ix_transactions_type_txn_date", "type", "txn_date"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid4()))
    txn_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    value_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    balance: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    operation_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    manual_category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    is_manual_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def signed_amount(self) -> int:
        return self.amount if self.type == "income" else -self.amount

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, txn_date={self.txn_date}, amount={self.amount}, type={self.type})>"
