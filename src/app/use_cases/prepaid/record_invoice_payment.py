"""RecordInvoicePayment Use Case

Marks an invoice paid and, for a prepaid top-up invoice, credits the
client's balance by the invoice amount exactly once.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.domain.errors import RetriesExhaustedError
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.ledger_transaction import LedgerTransaction, TransactionType
from .dtos import InvoicePaymentResponseDTO
from .errors import ErrorCode, client_not_found, invoice_not_found, transient_failure
from .retry import RetryPolicy, run_in_transaction

logger = logging.getLogger(__name__)

PAYMENT_CREDIT_DESCRIPTION = "Prepaid balance replenishment - invoice paid"


class RecordInvoicePayment:
    """
    Use Case: Record payment of an invoice

    Business Rules:
    1. SENT -> PAID is a compare-and-swap; only one payer wins
    2. A paid top-up invoice credits the balance once, linked to the invoice
    3. Paying an already PAID invoice is a no-op
    4. A CANCELLED or DRAFT invoice cannot be paid
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        profile_repo: ClientBillingProfileRepository,
        transaction_repo: LedgerTransactionRepository,
        policy: RetryPolicy = RetryPolicy(),
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.profile_repo = profile_repo
        self.transaction_repo = transaction_repo
        self.policy = policy

    async def execute(
        self, invoice_id: int, workspace_id: Optional[str] = None
    ) -> Result[InvoicePaymentResponseDTO]:
        try:
            return await run_in_transaction(
                self.uow,
                "record_invoice_payment",
                lambda: self._record(invoice_id, workspace_id),
                self.policy,
            )
        except RetriesExhaustedError as e:
            return Return.err(transient_failure(e))
        except Exception as e:
            logger.exception(f"Recording payment failed for invoice {invoice_id}")
            return Return.err(
                Error(
                    code="RECORD_INVOICE_PAYMENT_FAILED",
                    message="Failed to record invoice payment",
                    reason=str(e),
                )
            )

    async def _record(
        self, invoice_id: int, workspace_id: Optional[str]
    ) -> Result[InvoicePaymentResponseDTO]:
        invoice = await self.invoice_repo.get_by_id(invoice_id)
        if not invoice or (workspace_id and invoice.workspace_id != workspace_id):
            return Return.err(invoice_not_found(invoice_id))

        if invoice.status == InvoiceStatus.PAID:
            credit = None
            if invoice.is_top_up:
                credit = await self.transaction_repo.find_by_linked_invoice(invoice.id)
            return Return.ok(
                InvoicePaymentResponseDTO(
                    invoice_id=invoice.id,
                    status=invoice.status.value,
                    is_top_up=invoice.is_top_up,
                    new_balance=credit.balance_after if credit else None,
                    transaction_id=credit.id if credit else None,
                    already_paid=True,
                )
            )

        if invoice.status == InvoiceStatus.CANCELLED:
            return Return.err(
                Error(
                    code=ErrorCode.INVOICE_ALREADY_CANCELLED,
                    message=f"Invoice {invoice.invoice_number} was cancelled and cannot be paid",
                )
            )

        if invoice.status != InvoiceStatus.SENT:
            return Return.err(
                Error(
                    code=ErrorCode.INVOICE_NOT_SENT,
                    message=f"Invoice {invoice.invoice_number} has not been sent and cannot be paid",
                    reason=f"status={invoice.status.value}",
                )
            )

        await self.invoice_repo.transition_status(
            invoice, InvoiceStatus.SENT, InvoiceStatus.PAID, paid_at=datetime.utcnow()
        )

        if not invoice.is_top_up:
            logger.info(f"Invoice {invoice.invoice_number} marked paid")
            return Return.ok(
                InvoicePaymentResponseDTO(
                    invoice_id=invoice.id,
                    status=InvoiceStatus.PAID.value,
                    is_top_up=False,
                )
            )

        return await self._credit_top_up(invoice)

    async def _credit_top_up(self, invoice: Invoice) -> Result[InvoicePaymentResponseDTO]:
        profile = await self.profile_repo.get_by_client_id(invoice.client_id)
        if not profile:
            return Return.err(client_not_found(invoice.client_id))

        new_balance = await self.profile_repo.apply_delta(profile, invoice.amount)
        entry = await self.transaction_repo.record(
            LedgerTransaction(
                client_profile_id=profile.id,
                transaction_type=TransactionType.CREDIT,
                amount=invoice.amount,
                balance_after=new_balance,
                description=PAYMENT_CREDIT_DESCRIPTION,
                linked_invoice_id=invoice.id,
            )
        )

        logger.info(
            f"Top-up invoice {invoice.invoice_number} paid: credited {invoice.amount} "
            f"to client {profile.client_id}, balance now {new_balance}"
        )

        return Return.ok(
            InvoicePaymentResponseDTO(
                invoice_id=invoice.id,
                status=InvoiceStatus.PAID.value,
                is_top_up=True,
                amount_credited=invoice.amount,
                new_balance=new_balance,
                transaction_id=entry.id,
            )
        )
