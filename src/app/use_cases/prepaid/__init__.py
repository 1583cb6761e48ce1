"""Prepaid billing use cases"""
from .rate_resolver import SessionRateResolver
from .deduct_session import DeductSession
from .generate_top_up_invoice import GenerateTopUpInvoice
from .record_invoice_payment import RecordInvoicePayment
from .void_invoice_and_switch_billing import VoidInvoiceAndSwitchBilling
from .add_credit import AddCredit
from .update_billing_settings import UpdateBillingSettings
from .check_balance_and_invoice import CheckBalanceAndInvoice
from .process_session_completion import ProcessSessionCompletion
from .list_transactions import ListTransactions
from .get_prepaid_clients_summary import GetPrepaidClientsSummary
from .reconcile_ledger import ReconcileLedger
from .retry import RetryPolicy, run_in_transaction, is_transient_error
from .errors import ErrorCode, NOT_FOUND_CODES, CONFIGURATION_CODES
from .dtos import (
    ResolvedRateDTO,
    SessionDeductionOutcomeDTO,
    AddCreditCommandDTO,
    AddCreditResponseDTO,
    UpdateBillingSettingsCommandDTO,
    BillingSettingsResponseDTO,
    TopUpInvoiceResponseDTO,
    InvoicePaymentResponseDTO,
    VoidAndSwitchResponseDTO,
    TransactionDTO,
    ListTransactionsResponseDTO,
    PrepaidClientSummaryDTO,
    PrepaidSummaryTotalsDTO,
    PrepaidClientsSummaryResponseDTO,
    BalanceCheckResponseDTO,
    SessionBillingResponseDTO,
    LedgerDiscrepancyDTO,
    ReconciliationResultDTO,
)

__all__ = [
    "SessionRateResolver",
    "DeductSession",
    "GenerateTopUpInvoice",
    "RecordInvoicePayment",
    "VoidInvoiceAndSwitchBilling",
    "AddCredit",
    "UpdateBillingSettings",
    "CheckBalanceAndInvoice",
    "ProcessSessionCompletion",
    "ListTransactions",
    "GetPrepaidClientsSummary",
    "ReconcileLedger",
    "RetryPolicy",
    "run_in_transaction",
    "is_transient_error",
    "ErrorCode",
    "NOT_FOUND_CODES",
    "CONFIGURATION_CODES",
    "ResolvedRateDTO",
    "SessionDeductionOutcomeDTO",
    "AddCreditCommandDTO",
    "AddCreditResponseDTO",
    "UpdateBillingSettingsCommandDTO",
    "BillingSettingsResponseDTO",
    "TopUpInvoiceResponseDTO",
    "InvoicePaymentResponseDTO",
    "VoidAndSwitchResponseDTO",
    "TransactionDTO",
    "ListTransactionsResponseDTO",
    "PrepaidClientSummaryDTO",
    "PrepaidSummaryTotalsDTO",
    "PrepaidClientsSummaryResponseDTO",
    "BalanceCheckResponseDTO",
    "SessionBillingResponseDTO",
    "LedgerDiscrepancyDTO",
    "ReconciliationResultDTO",
]
