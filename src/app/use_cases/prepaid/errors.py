"""Error codes returned by prepaid billing use cases"""

from libs.result import Error
from src.domain.errors import RetriesExhaustedError


class ErrorCode:
    # Not found (cross-workspace access is reported the same way)
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    CLIENT_NOT_FOUND = "CLIENT_NOT_FOUND"
    INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"

    # Validation
    SESSION_NOT_BILLABLE = "SESSION_NOT_BILLABLE"
    CLIENT_NOT_PREPAID = "CLIENT_NOT_PREPAID"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_BILLING_MODE = "INVALID_BILLING_MODE"
    INVOICE_NOT_TOP_UP = "INVOICE_NOT_TOP_UP"
    INVOICE_ALREADY_PAID = "INVOICE_ALREADY_PAID"
    INVOICE_ALREADY_CANCELLED = "INVOICE_ALREADY_CANCELLED"
    INVOICE_NOT_SENT = "INVOICE_NOT_SENT"

    # Configuration
    TARGET_BALANCE_NOT_CONFIGURED = "TARGET_BALANCE_NOT_CONFIGURED"
    RATE_NOT_CONFIGURED = "RATE_NOT_CONFIGURED"

    # Concurrency
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"


NOT_FOUND_CODES = {
    ErrorCode.SESSION_NOT_FOUND,
    ErrorCode.CLIENT_NOT_FOUND,
    ErrorCode.INVOICE_NOT_FOUND,
}

CONFIGURATION_CODES = {
    ErrorCode.TARGET_BALANCE_NOT_CONFIGURED,
    ErrorCode.RATE_NOT_CONFIGURED,
}


def client_not_found(client_ref) -> Error:
    return Error(
        code=ErrorCode.CLIENT_NOT_FOUND,
        message=f"Client billing profile not found for {client_ref}",
    )


def invoice_not_found(invoice_id) -> Error:
    return Error(
        code=ErrorCode.INVOICE_NOT_FOUND,
        message=f"Invoice {invoice_id} not found",
    )


def transient_failure(exc: RetriesExhaustedError) -> Error:
    return Error(
        code=ErrorCode.TRANSIENT_FAILURE,
        message=f"{exc.operation} could not complete due to concurrent updates; safe to retry",
        reason=str(exc.last_error),
        retryable=True,
    )
