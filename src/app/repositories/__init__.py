from .client_billing_profile_repository import ClientBillingProfileRepository
from .ledger_transaction_repository import LedgerTransactionRepository
from .invoice_repository import InvoiceRepository
from .invoice_line_repository import InvoiceLineRepository
from .training_session_repository import TrainingSessionRepository
from .trainer_settings_repository import TrainerSettingsRepository

__all__ = [
    "ClientBillingProfileRepository",
    "LedgerTransactionRepository",
    "InvoiceRepository",
    "InvoiceLineRepository",
    "TrainingSessionRepository",
    "TrainerSettingsRepository",
]
