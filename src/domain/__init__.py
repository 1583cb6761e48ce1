from .base import BaseModel, generate_uuid, to_money
from .client_billing_profile import ClientBillingProfile, BillingMode
from .ledger_transaction import LedgerTransaction, TransactionType
from .training_session import TrainingSession, SessionStatus, GroupOverride
from .trainer_settings import TrainerBillingSettings, GroupMatchingStrategy
from .invoice import Invoice, InvoiceStatus, InvoiceCategory, TOP_UP_MARKER
from .invoice_line import InvoiceLine

__all__ = [
    "BaseModel",
    "generate_uuid",
    "to_money",
    "ClientBillingProfile",
    "BillingMode",
    "LedgerTransaction",
    "TransactionType",
    "TrainingSession",
    "SessionStatus",
    "GroupOverride",
    "TrainerBillingSettings",
    "GroupMatchingStrategy",
    "Invoice",
    "InvoiceStatus",
    "InvoiceCategory",
    "TOP_UP_MARKER",
    "InvoiceLine",
]
