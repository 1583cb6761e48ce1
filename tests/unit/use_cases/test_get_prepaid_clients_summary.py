"""Unit tests for GetPrepaidClientsSummary use case"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.prepaid.get_prepaid_clients_summary import (
    GetPrepaidClientsSummary,
    balance_status,
)
from src.domain.client_billing_profile import BillingMode, ClientBillingProfile
from src.domain.ledger_transaction import LedgerTransaction, TransactionType


def _entry(entry_id, txn_type, amount, balance_after, created_at=None):
    return LedgerTransaction(
        id=entry_id,
        client_profile_id=1,
        transaction_type=txn_type,
        amount=Decimal(amount),
        balance_after=Decimal(balance_after),
        description="entry",
        created_at=created_at or datetime(2025, 3, 5, 12, 0),
    )


@pytest.fixture
def mock_transaction_repo():
    return MagicMock()


@pytest.mark.asyncio
class TestGetPrepaidClientsSummary:

    @pytest.fixture
    def profiles(self):
        def _profile(profile_id, name, balance, target):
            return ClientBillingProfile(
                id=profile_id,
                client_id=f"client_{profile_id}",
                trainer_id="trainer_123",
                workspace_id="ws_1",
                client_name=name,
                billing_mode=BillingMode.PREPAID,
                current_balance=Decimal(balance),
                target_balance=Decimal(target),
                individual_rate=Decimal("100.00"),
            )

        return [
            _profile(1, "Alice", "400.00", "500.00"),
            _profile(2, "Bob", "100.00", "500.00"),
            _profile(3, "Cara", "0.00", "300.00"),
        ]

    @pytest.fixture
    def summary_use_case(self, profiles, mock_transaction_repo):
        profile_repo = MagicMock()
        profile_repo.list_prepaid = AsyncMock(return_value=profiles)

        last_credit = _entry(10, TransactionType.CREDIT, "500.00", "500.00")
        last_entry = _entry(12, TransactionType.DEDUCTION, "100.00", "400.00", datetime(2025, 3, 6, 9, 0))

        async def get_latest(profile_id, transaction_type=None):
            if profile_id == 3:
                return None
            return last_credit if transaction_type == TransactionType.CREDIT else last_entry

        mock_transaction_repo.get_latest = AsyncMock(side_effect=get_latest)
        mock_transaction_repo.count_since = AsyncMock(return_value=2)
        return GetPrepaidClientsSummary(
            profile_repo=profile_repo,
            transaction_repo=mock_transaction_repo,
            low_balance_ratio=0.25,
        )

    async def test_summarises_each_client(self, summary_use_case, mock_transaction_repo):
        result = await summary_use_case.execute("trainer_123", "ws_1")

        assert result.is_ok()
        clients = result.value.clients
        assert [c.client_name for c in clients] == ["Alice", "Bob", "Cara"]
        assert [c.balance_status for c in clients] == ["healthy", "low", "empty"]
        assert clients[0].sessions_consumed_since_last_credit == 2
        assert clients[0].last_transaction_at == datetime(2025, 3, 6, 9, 0)
        assert clients[2].last_transaction_at is None
        mock_transaction_repo.count_since.assert_any_call(1, 10)
        mock_transaction_repo.count_since.assert_any_call(3, None)

    async def test_totals(self, summary_use_case):
        result = await summary_use_case.execute("trainer_123", "ws_1")

        totals = result.value.totals
        assert totals.total_balance == Decimal("500.00")
        assert totals.total_target == Decimal("1300.00")
        assert totals.client_count == 3
        assert totals.clients_needing_attention == 2

    async def test_no_prepaid_clients(self, mock_transaction_repo):
        profile_repo = MagicMock()
        profile_repo.list_prepaid = AsyncMock(return_value=[])
        use_case = GetPrepaidClientsSummary(profile_repo, mock_transaction_repo)

        result = await use_case.execute("trainer_123", "ws_1")

        assert result.value.clients == []
        assert result.value.totals.client_count == 0
        assert result.value.totals.total_balance == Decimal("0.00")


class TestBalanceStatus:

    @pytest.mark.parametrize(
        "current, target, expected",
        [
            ("0.00", "500.00", "empty"),
            ("124.99", "500.00", "low"),
            ("125.00", "500.00", "healthy"),
            ("50.00", None, "healthy"),
        ],
    )
    def test_thresholds(self, current, target, expected):
        target_value = Decimal(target) if target is not None else None
        assert balance_status(Decimal(current), target_value, Decimal("0.25")) == expected
