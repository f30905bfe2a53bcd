"""Database models."""
from pfinance.models.balance import AccountBalance, BalanceAuditLog, FileBalance
from pfinance.models.category import Category
from pfinance.models.category_rule import CategoryRule
from pfinance.models.chat import ChatMessage
from pfinance.models.transaction import Transaction

__all__ = [
    "AccountBalance",
    "BalanceAuditLog",
    "Category",
    "CategoryRule",
    "ChatMessage",
    "FileBalance",
    "Transaction",
]
