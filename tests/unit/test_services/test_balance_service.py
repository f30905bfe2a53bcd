"""Unit tests for balance service helpers and rollback behaviour."""

from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.balance.reconciler import Baseline, reconcile
from pfinance.core.exceptions import PersistenceError, ValidationError
from pfinance.services.balance import BalanceService, alert_message, format_amount


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock(spec=AsyncSession)
    db.add = Mock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


def test_format_amount():
    assert format_amount(5001, 2, "EUR") == "50.01 EUR"
    assert format_amount(-20100, 2, "EUR") == "-201.00 EUR"
    assert format_amount(7, 0, "JPY") == "7 JPY"


def test_alert_message_only_when_alerting():
    ok = reconcile(Baseline(balance=100000), [], live_balance=95000)
    medium = reconcile(Baseline(balance=100000), [], live_balance=94999)
    high = reconcile(Baseline(balance=100000), [], live_balance=79900)

    assert alert_message(ok) is None
    assert "50.01" in alert_message(medium)
    assert alert_message(high).startswith("Large discrepancy")


class TestOverrideBalance:
    @pytest.mark.asyncio
    async def test_out_of_range_rejected_before_any_write(self, mock_db):
        service = BalanceService(mock_db)

        with pytest.raises(ValidationError) as exc_info:
            await service.override_balance(100_000_001)

        assert exc_info.value.error_code == "VAL_002"
        mock_db.execute.assert_not_called()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_audit_write_rolls_back(self, mock_db):
        service = BalanceService(mock_db)
        service.balance_repo = MagicMock()
        service.balance_repo.get_account_balance = AsyncMock(return_value=None)
        service.balance_repo.set_account_balance = AsyncMock()
        service.balance_repo.append_audit_entry = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("disk I/O error"))
        )

        with pytest.raises(PersistenceError) as exc_info:
            await service.override_balance(50000, "test")

        assert exc_info.value.error_code == "DB_001"
        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_called()
