"""Domain exceptions for the prepaid billing engine

Raised inside repositories and use cases, and converted to ``libs.result.Error``
at the use-case boundary.
"""

from decimal import Decimal
from typing import Optional


class PrepaidBillingError(Exception):
    """Base class for billing engine failures"""

    code: str = "PREPAID_BILLING_ERROR"
    retryable: bool = False


class ConcurrencyConflictError(PrepaidBillingError):
    """A compare-and-swap update lost the race against another transaction"""

    code = "CONCURRENCY_CONFLICT"
    retryable = True

    def __init__(self, entity: str, entity_id, expected: Optional[object] = None):
        self.entity = entity
        self.entity_id = entity_id
        self.expected = expected
        super().__init__(
            f"{entity} {entity_id} was modified concurrently (expected {expected})"
        )


class NegativeBalanceError(PrepaidBillingError):
    """A balance delta would drive the balance below zero"""

    code = "NEGATIVE_BALANCE"

    def __init__(self, profile_id: int, balance: Decimal, delta: Decimal):
        self.profile_id = profile_id
        self.balance = balance
        self.delta = delta
        super().__init__(
            f"Applying {delta} to balance {balance} of profile {profile_id} would go negative"
        )


class RateConfigurationError(PrepaidBillingError):
    """A session rate is missing, zero or negative"""

    code = "RATE_NOT_CONFIGURED"

    def __init__(self, message: str):
        super().__init__(message)


class RetriesExhaustedError(PrepaidBillingError):
    """Transient conflicts persisted past the retry budget"""

    code = "TRANSIENT_FAILURE"
    retryable = True

    def __init__(self, operation: str, attempts: int, last_error: Exception):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation} gave up after {attempts} attempts: {last_error}"
        )
