from .client_billing_profile_repository import SqlAlchemyClientBillingProfileRepository
from .ledger_transaction_repository import SqlAlchemyLedgerTransactionRepository
from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_line_repository import SqlAlchemyInvoiceLineRepository
from .training_session_repository import SqlAlchemyTrainingSessionRepository
from .trainer_settings_repository import SqlAlchemyTrainerSettingsRepository

__all__ = [
    "SqlAlchemyClientBillingProfileRepository",
    "SqlAlchemyLedgerTransactionRepository",
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceLineRepository",
    "SqlAlchemyTrainingSessionRepository",
    "SqlAlchemyTrainerSettingsRepository",
]
