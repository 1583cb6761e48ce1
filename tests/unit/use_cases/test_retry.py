"""Unit tests for the optimistic-concurrency retry loop"""

import pytest
from unittest.mock import AsyncMock

from libs.result import Error, Return
from sqlalchemy.exc import IntegrityError, OperationalError
from src.app.use_cases.prepaid.retry import RetryPolicy, is_transient_error, run_in_transaction
from src.domain.errors import (
    ConcurrencyConflictError,
    NegativeBalanceError,
    RateConfigurationError,
    RetriesExhaustedError,
)


class TestRetryPolicy:

    def test_delays_grow_exponentially_and_are_capped(self):
        policy = RetryPolicy(max_attempts=8, base_delay=0.05, backoff_factor=2.0, max_delay=0.3)

        assert policy.delay_for(1) == pytest.approx(0.05)
        assert policy.delay_for(2) == pytest.approx(0.1)
        assert policy.delay_for(3) == pytest.approx(0.2)
        assert policy.delay_for(4) == pytest.approx(0.3)
        assert policy.delay_for(7) == pytest.approx(0.3)

    def test_from_config(self):
        class Config:
            DEDUCTION_MAX_ATTEMPTS = 5
            RETRY_BASE_DELAY_SECONDS = 0.01
            RETRY_BACKOFF_FACTOR = 3.0
            RETRY_MAX_DELAY_SECONDS = 0.5

        policy = RetryPolicy.from_config(Config)

        assert policy.max_attempts == 5
        assert policy.base_delay == 0.01
        assert policy.backoff_factor == 3.0
        assert policy.max_delay == 0.5


class TestIsTransientError:

    def test_concurrency_conflict_is_transient(self):
        assert is_transient_error(ConcurrencyConflictError("ClientBillingProfile", 1, 3))

    def test_business_errors_are_not_transient(self):
        assert not is_transient_error(RateConfigurationError("no rate"))
        assert not is_transient_error(NegativeBalanceError(1, 0, -1))
        assert not is_transient_error(ValueError("boom"))

    def test_idempotency_index_violation_is_transient(self):
        exc = IntegrityError(
            "INSERT INTO prepaid_transactions ...",
            {},
            Exception("UNIQUE constraint failed: prepaid_transactions.linked_session_id"),
        )
        assert is_transient_error(exc)

    def test_other_integrity_error_is_not_transient(self):
        exc = IntegrityError(
            "INSERT INTO client_billing_profiles ...",
            {},
            Exception("CHECK constraint failed: current_balance_non_negative"),
        )
        assert not is_transient_error(exc)

    def test_sqlite_locked_is_transient(self):
        exc = OperationalError("UPDATE ...", {}, Exception("database is locked"))
        assert is_transient_error(exc)

    def test_serialization_failure_is_transient(self):
        class SerializationFailure(Exception):
            sqlstate = "40001"

        exc = OperationalError("UPDATE ...", {}, SerializationFailure("could not serialize access"))
        assert is_transient_error(exc)


@pytest.mark.asyncio
class TestRunInTransaction:

    async def test_commits_successful_result(self, mock_uow, fast_policy):
        work = AsyncMock(return_value=Return.ok("done"))

        result = await run_in_transaction(mock_uow, "op", work, fast_policy)

        assert result.is_ok()
        assert result.value == "done"
        mock_uow.commit.assert_called_once()
        mock_uow.rollback.assert_not_called()

    async def test_rolls_back_error_result_without_retry(self, mock_uow, fast_policy):
        work = AsyncMock(return_value=Return.err(Error(code="CLIENT_NOT_FOUND", message="x")))

        result = await run_in_transaction(mock_uow, "op", work, fast_policy)

        assert result.is_err()
        assert work.call_count == 1
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()

    async def test_retries_conflicts_until_success(self, mock_uow, fast_policy):
        work = AsyncMock(
            side_effect=[
                ConcurrencyConflictError("ClientBillingProfile", 1, 3),
                ConcurrencyConflictError("ClientBillingProfile", 1, 4),
                Return.ok("done"),
            ]
        )
        sleep = AsyncMock()

        result = await run_in_transaction(mock_uow, "op", work, fast_policy, sleep=sleep)

        assert result.is_ok()
        assert work.call_count == 3
        assert mock_uow.rollback.call_count == 2
        mock_uow.commit.assert_called_once()
        assert sleep.call_count == 2

    async def test_conflict_on_commit_is_retried(self, mock_uow, fast_policy):
        mock_uow.commit = AsyncMock(
            side_effect=[OperationalError("COMMIT", {}, Exception("database is locked")), None]
        )
        work = AsyncMock(return_value=Return.ok("done"))

        result = await run_in_transaction(mock_uow, "op", work, fast_policy, sleep=AsyncMock())

        assert result.is_ok()
        assert work.call_count == 2

    async def test_raises_when_attempts_exhausted(self, mock_uow, fast_policy):
        work = AsyncMock(side_effect=ConcurrencyConflictError("ClientBillingProfile", 1, 3))
        sleep = AsyncMock()

        with pytest.raises(RetriesExhaustedError) as exc_info:
            await run_in_transaction(mock_uow, "deduct_session", work, fast_policy, sleep=sleep)

        assert exc_info.value.attempts == 3
        assert exc_info.value.operation == "deduct_session"
        assert work.call_count == 3
        assert mock_uow.rollback.call_count == 3
        assert sleep.call_count == 2
        mock_uow.commit.assert_not_called()

    async def test_non_transient_error_propagates_after_rollback(self, mock_uow, fast_policy):
        work = AsyncMock(side_effect=RateConfigurationError("no rate"))

        with pytest.raises(RateConfigurationError):
            await run_in_transaction(mock_uow, "op", work, fast_policy)

        assert work.call_count == 1
        mock_uow.rollback.assert_called_once()
