"""Bounded retry for optimistic-concurrency units of work

Balance mutations never lock rows. Each attempt reads, validates and writes
inside one unit of work; a lost compare-and-swap, a racing insert on an
idempotency index, or a database serialization failure rolls the unit back
and runs it again after an exponential backoff.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional
from pydantic import BaseModel, Field
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from libs.result import Result
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import PrepaidBillingError, RetriesExhaustedError

logger = logging.getLogger(__name__)

# PostgreSQL serialization_failure and deadlock_detected
TRANSIENT_SQLSTATES = {"40001", "40P01"}

# Unique indexes whose violation means a concurrent writer got there first.
# PostgreSQL reports the index name, SQLite the indexed column.
IDEMPOTENCY_CONSTRAINTS = (
    "ux_prepaid_transactions_session_deduction",
    "ux_prepaid_transactions_invoice_credit",
    "ix_invoices_invoice_number",
    "prepaid_transactions.linked_session_id",
    "prepaid_transactions.linked_invoice_id",
    "invoices.invoice_number",
)


class RetryPolicy(BaseModel):
    """Retry budget: attempt n waits base_delay * factor**(n-1), capped"""

    max_attempts: int = Field(default=8, ge=1)
    base_delay: float = Field(default=0.05, ge=0)
    backoff_factor: float = Field(default=2.0, ge=1)
    max_delay: float = Field(default=1.0, ge=0)

    model_config = {"frozen": True}

    @classmethod
    def from_config(cls, config) -> "RetryPolicy":
        return cls(
            max_attempts=config.DEDUCTION_MAX_ATTEMPTS,
            base_delay=config.RETRY_BASE_DELAY_SECONDS,
            backoff_factor=config.RETRY_BACKOFF_FACTOR,
            max_delay=config.RETRY_MAX_DELAY_SECONDS,
        )

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (self.backoff_factor ** (attempt - 1)), self.max_delay)


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
    return None


def is_transient_error(exc: Exception) -> bool:
    """True if re-running the whole unit of work may succeed"""
    if isinstance(exc, PrepaidBillingError):
        return exc.retryable

    if isinstance(exc, IntegrityError):
        message = str(exc.orig)
        return any(name in message for name in IDEMPOTENCY_CONSTRAINTS)

    if isinstance(exc, DBAPIError):
        if _sqlstate(exc) in TRANSIENT_SQLSTATES:
            return True
        if isinstance(exc, OperationalError):
            message = str(exc.orig).lower()
            return "locked" in message or "deadlock" in message

    return False


async def run_in_transaction(
    uow: UnitOfWork,
    operation: str,
    work: Callable[[], Awaitable[Result]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Result:
    """
    Run work() as one unit of work, retrying transient failures

    A successful Result is committed, an error Result is rolled back and
    returned as is. Non-transient exceptions propagate after rollback.

    Raises:
        RetriesExhaustedError: If every attempt hit a transient failure
    """
    last_error: Optional[Exception] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            result = await work()
            if result.is_err():
                await uow.rollback()
            else:
                await uow.commit()
            return result
        except Exception as e:
            await uow.rollback()
            if not is_transient_error(e):
                raise
            last_error = e

        if attempt < policy.max_attempts:
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{operation}: transient conflict on attempt {attempt}/{policy.max_attempts}, "
                f"retrying in {delay:.3f}s ({last_error})"
            )
            await sleep(delay)

    logger.error(f"{operation}: giving up after {policy.max_attempts} attempts ({last_error})")
    raise RetriesExhaustedError(operation, policy.max_attempts, last_error)
