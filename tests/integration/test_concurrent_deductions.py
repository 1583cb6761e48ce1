"""Concurrency tests for prepaid deductions

Each concurrent caller gets its own database session, as separate API
requests would. Balance updates are compare-and-swap on the profile version;
losers roll back and retry.
"""

import asyncio
import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from src.adapter.repositories import (
    SqlAlchemyClientBillingProfileRepository,
    SqlAlchemyLedgerTransactionRepository,
)
from tests.integration.factories import deduct_session_use_case, make_profile, make_session


async def _deduct(session_factory, session_id):
    async with session_factory() as session:
        return await deduct_session_use_case(session).execute(session_id)


@pytest.mark.asyncio
class TestConcurrentDeductions:

    async def test_parallel_sessions_serialise_on_balance(self, session_factory, seed):
        """
        Given: Balance 500.00, rate 150.00 and three completed sessions
        When: All three are deducted concurrently
        Then: Balance 50.00 and the ledger chain reads 350, 200, 50
        """
        profile = await seed(
            make_profile(individual_rate=Decimal("150.00"), target_balance=Decimal("500.00"))
        )
        start = datetime(2025, 3, 5, 8, 0)
        await seed(
            *[
                make_session(
                    f"sess_{i}",
                    start_time=start + timedelta(hours=2 * i),
                    end_time=start + timedelta(hours=2 * i + 1),
                )
                for i in range(3)
            ]
        )

        results = await asyncio.gather(
            *[_deduct(session_factory, f"sess_{i}") for i in range(3)]
        )

        assert all(r.is_ok() for r in results)
        assert all(r.value.amount_deducted == Decimal("150.00") for r in results)

        async with session_factory() as session:
            stored = await SqlAlchemyClientBillingProfileRepository(session).get_by_id(profile.id)
            entries = await SqlAlchemyLedgerTransactionRepository(session).list_chronological(profile.id)

        assert stored.current_balance == Decimal("50.00")
        assert stored.version == 3
        assert [e.balance_after for e in entries] == [
            Decimal("350.00"), Decimal("200.00"), Decimal("50.00")
        ]
        assert {e.linked_session_id for e in entries} == {"sess_0", "sess_1", "sess_2"}

    async def test_same_session_raced_is_charged_once(self, session_factory, seed):
        profile = await seed(make_profile())
        await seed(make_session("sess_1"))

        results = await asyncio.gather(
            _deduct(session_factory, "sess_1"),
            _deduct(session_factory, "sess_1"),
        )

        assert all(r.is_ok() for r in results)
        assert sorted(r.value.already_processed for r in results) == [False, True]

        async with session_factory() as session:
            stored = await SqlAlchemyClientBillingProfileRepository(session).get_by_id(profile.id)
            entries = await SqlAlchemyLedgerTransactionRepository(session).list_chronological(profile.id)

        assert stored.current_balance == Decimal("400.00")
        assert len(entries) == 1
