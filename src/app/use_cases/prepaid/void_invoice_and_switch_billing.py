"""VoidInvoiceAndSwitchBilling Use Case

Lets an operator take a client off prepaid billing: the open top-up invoice
is cancelled, the billing mode changes, and any remaining balance stays on
the profile as credit.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.domain.base import to_money
from src.domain.client_billing_profile import BillingMode
from src.domain.errors import RetriesExhaustedError
from src.domain.invoice import InvoiceStatus
from src.domain.ledger_transaction import LedgerTransaction, TransactionType
from .dtos import VoidAndSwitchResponseDTO
from .errors import ErrorCode, client_not_found, invoice_not_found, transient_failure
from .retry import RetryPolicy, run_in_transaction

logger = logging.getLogger(__name__)

SWITCH_TARGET_MODES = (BillingMode.PER_SESSION, BillingMode.MONTHLY)


def retention_description(credit_amount, new_mode: BillingMode) -> str:
    return f"Credit retained (${to_money(credit_amount)}) - switching to {new_mode.value} billing"


class VoidInvoiceAndSwitchBilling:
    """
    Use Case: Void a top-up invoice and switch billing mode

    Business Rules:
    1. Only an unpaid, uncancelled top-up invoice can be voided
    2. The new mode must be PER_SESSION or MONTHLY
    3. Invoice cancellation and mode change commit together
    4. The balance is never touched; a positive balance is recorded as a
       zero-amount CREDIT memo so the retained credit is visible in history
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
        self, invoice_id: int, new_mode: str, workspace_id: Optional[str] = None
    ) -> Result[VoidAndSwitchResponseDTO]:
        """
        Args:
            invoice_id: Top-up invoice to void
            new_mode: PER_SESSION or MONTHLY
            workspace_id: Caller's workspace; a mismatch is reported as not found
        """
        try:
            return await run_in_transaction(
                self.uow,
                "void_invoice_and_switch_billing",
                lambda: self._void_and_switch(invoice_id, new_mode, workspace_id),
                self.policy,
            )
        except RetriesExhaustedError as e:
            return Return.err(transient_failure(e))
        except Exception as e:
            logger.exception(f"Void and switch failed for invoice {invoice_id}")
            return Return.err(
                Error(
                    code="VOID_INVOICE_AND_SWITCH_FAILED",
                    message="Failed to void invoice and switch billing",
                    reason=str(e),
                )
            )

    async def _void_and_switch(
        self, invoice_id: int, new_mode: str, workspace_id: Optional[str]
    ) -> Result[VoidAndSwitchResponseDTO]:
        invoice = await self.invoice_repo.get_by_id(invoice_id)
        if not invoice or (workspace_id and invoice.workspace_id != workspace_id):
            return Return.err(invoice_not_found(invoice_id))

        if not invoice.is_top_up:
            return Return.err(
                Error(
                    code=ErrorCode.INVOICE_NOT_TOP_UP,
                    message=f"Invoice {invoice.invoice_number} is not a prepaid top-up invoice",
                )
            )

        if invoice.status == InvoiceStatus.PAID:
            return Return.err(
                Error(
                    code=ErrorCode.INVOICE_ALREADY_PAID,
                    message=f"Invoice {invoice.invoice_number} is already paid",
                )
            )

        if invoice.status == InvoiceStatus.CANCELLED:
            return Return.err(
                Error(
                    code=ErrorCode.INVOICE_ALREADY_CANCELLED,
                    message=f"Invoice {invoice.invoice_number} is already cancelled",
                )
            )

        mode = _parse_switch_mode(new_mode)
        if mode is None:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_BILLING_MODE,
                    message=f"Cannot switch to billing mode {new_mode}",
                    reason=f"allowed={[m.value for m in SWITCH_TARGET_MODES]}",
                )
            )

        profile = await self.profile_repo.get_by_client_id(invoice.client_id)
        if not profile:
            return Return.err(client_not_found(invoice.client_id))

        await self.invoice_repo.transition_status(invoice, invoice.status, InvoiceStatus.CANCELLED)
        await self.profile_repo.update_billing_settings(profile, mode, profile.target_balance)

        credit_amount = to_money(profile.current_balance)
        transaction_id = None
        if credit_amount > 0:
            entry = await self.transaction_repo.record(
                LedgerTransaction(
                    client_profile_id=profile.id,
                    transaction_type=TransactionType.CREDIT,
                    amount=to_money(0),
                    balance_after=credit_amount,
                    description=retention_description(credit_amount, mode),
                )
            )
            transaction_id = entry.id

        logger.info(
            f"Voided invoice {invoice.invoice_number}, client {profile.client_id} switched to "
            f"{mode.value} with {credit_amount} credit retained"
        )

        return Return.ok(
            VoidAndSwitchResponseDTO(
                success=True,
                invoice_id=invoice.id,
                credit_amount=credit_amount,
                new_billing_mode=mode.value,
                transaction_id=transaction_id,
            )
        )


def _parse_switch_mode(value: str) -> Optional[BillingMode]:
    try:
        mode = BillingMode(value)
    except ValueError:
        return None
    return mode if mode in SWITCH_TARGET_MODES else None
