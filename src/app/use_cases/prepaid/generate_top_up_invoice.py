"""GenerateTopUpInvoice Use Case

Bills a prepaid client for the amount needed to bring the balance back to
the target, itemised by the sessions deducted since the last credit.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional
from libs.result import Result, Return, Error
from src.app.services.notification_service import NotificationService
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.app.repositories.trainer_settings_repository import TrainerSettingsRepository
from src.domain.base import to_money
from src.domain.client_billing_profile import ClientBillingProfile
from src.domain.errors import RetriesExhaustedError
from src.domain.invoice import Invoice, InvoiceCategory, InvoiceStatus, TOP_UP_MARKER
from src.domain.invoice_line import InvoiceLine
from src.domain.ledger_transaction import TransactionType
from .dtos import TopUpInvoiceResponseDTO
from .errors import ErrorCode, client_not_found, transient_failure
from .retry import RetryPolicy, run_in_transaction

logger = logging.getLogger(__name__)


def top_up_notes(target_balance: Decimal, current_balance: Decimal) -> str:
    return (
        f"{TOP_UP_MARKER} to ${to_money(target_balance)}. "
        f"Current balance: ${to_money(current_balance)}"
    )


class GenerateTopUpInvoice:
    """
    Use Case: Generate a prepaid top-up invoice

    Business Rules:
    1. Only PREPAID clients with a positive target balance are invoiced
    2. Amount = target_balance - current_balance; nothing is created at or above target
    3. A client has at most one unresolved (SENT) top-up invoice; it is reused
    4. Invoices are created SENT and tagged PREPAID_TOPUP
    5. Delivery happens after commit; a delivery failure never undoes the invoice

    Flow:
    1. Load and validate the client profile
    2. Return the open top-up invoice if one exists
    3. Compute the amount needed
    4. Build line items from deductions since the last credit
    5. Create invoice and lines, commit
    6. Hand the invoice to the notification service
    """

    def __init__(
        self,
        uow: UnitOfWork,
        profile_repo: ClientBillingProfileRepository,
        transaction_repo: LedgerTransactionRepository,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        settings_repo: TrainerSettingsRepository,
        notification_service: Optional[NotificationService] = None,
        policy: RetryPolicy = RetryPolicy(),
        currency: str = "USD",
        default_due_days: int = 30,
    ):
        self.uow = uow
        self.profile_repo = profile_repo
        self.transaction_repo = transaction_repo
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo
        self.settings_repo = settings_repo
        self.notification_service = notification_service
        self.policy = policy
        self.currency = currency
        self.default_due_days = default_due_days

    async def execute(
        self,
        client_id: str,
        trainer_id: Optional[str] = None,
        workspace_id: Optional[str] = None,
    ) -> Result[Optional[TopUpInvoiceResponseDTO]]:
        """
        Execute top-up invoice generation

        Args:
            client_id: Client to invoice
            trainer_id: Issuing trainer (defaults to the client's trainer)
            workspace_id: Caller's workspace; a mismatch is reported as not found

        Returns:
            Result[Optional[TopUpInvoiceResponseDTO]]: Invoice details, None if
            the balance is already at or above target, or error
        """
        created: List[Invoice] = []

        async def work():
            created.clear()
            return await self._generate(client_id, trainer_id, workspace_id, created)

        try:
            result = await run_in_transaction(
                self.uow, "generate_top_up_invoice", work, self.policy
            )
        except RetriesExhaustedError as e:
            return Return.err(transient_failure(e))
        except Exception as e:
            logger.exception(f"Top-up invoice generation failed for client {client_id}")
            return Return.err(
                Error(
                    code="GENERATE_TOP_UP_INVOICE_FAILED",
                    message="Failed to generate top-up invoice",
                    reason=str(e),
                )
            )

        if result.is_ok() and created:
            invoice = created[0]
            logger.info(
                f"Created prepaid top-up invoice {invoice.invoice_number} "
                f"for client {invoice.client_id} ({invoice.amount})"
            )
            result.value.notified = await self._notify(invoice)

        return result

    async def _generate(
        self,
        client_id: str,
        trainer_id: Optional[str],
        workspace_id: Optional[str],
        created: List[Invoice],
    ) -> Result[Optional[TopUpInvoiceResponseDTO]]:
        profile = await self.profile_repo.get_by_client_id(client_id)
        if not profile or (workspace_id and profile.workspace_id != workspace_id):
            return Return.err(client_not_found(client_id))

        if not profile.is_prepaid:
            return Return.err(
                Error(
                    code=ErrorCode.CLIENT_NOT_PREPAID,
                    message=f"Client {client_id} is not on prepaid billing",
                    reason=f"billing_mode={profile.billing_mode.value}",
                )
            )

        if profile.target_balance is None or profile.target_balance <= 0:
            return Return.err(
                Error(
                    code=ErrorCode.TARGET_BALANCE_NOT_CONFIGURED,
                    message=f"Client {client_id} has no target balance configured",
                )
            )

        existing = await self.invoice_repo.find_open_top_up(client_id)
        if existing:
            logger.info(f"Reusing open top-up invoice {existing.invoice_number} for client {client_id}")
            return Return.ok(self._to_response_dto(existing, reused=True))

        amount_needed = to_money(profile.target_balance - profile.current_balance)
        if amount_needed <= 0:
            logger.info(f"Client {client_id} balance is at or above target, no invoice needed")
            return Return.ok(None)

        issuing_trainer = trainer_id or profile.trainer_id
        settings = await self.settings_repo.get_by_trainer_id(issuing_trainer)
        due_days = settings.invoice_due_days if settings and settings.invoice_due_days else self.default_due_days

        invoice = Invoice(
            invoice_number=await self.invoice_repo.generate_invoice_number(),
            client_id=client_id,
            trainer_id=issuing_trainer,
            workspace_id=profile.workspace_id,
            amount=amount_needed,
            currency=self.currency,
            status=InvoiceStatus.SENT,
            category=InvoiceCategory.PREPAID_TOPUP,
            notes=top_up_notes(profile.target_balance, profile.current_balance),
            due_date=(datetime.utcnow() + timedelta(days=due_days)).date(),
        )
        invoice = await self.invoice_repo.create(invoice)

        lines = await self._build_lines(profile, invoice, amount_needed)
        await self.invoice_line_repo.create_many(lines)

        created.append(invoice)
        return Return.ok(self._to_response_dto(invoice))

    async def _build_lines(
        self, profile: ClientBillingProfile, invoice: Invoice, amount_needed: Decimal
    ) -> List[InvoiceLine]:
        last_credit = await self.transaction_repo.get_latest(profile.id, TransactionType.CREDIT)
        deductions = await self.transaction_repo.list_since(
            profile.id,
            last_credit.id if last_credit else None,
            TransactionType.DEDUCTION,
        )

        lines = [
            InvoiceLine(
                invoice_id=invoice.id,
                session_id=deduction.linked_session_id,
                description=deduction.description,
                quantity=1,
                unit_price=deduction.amount,
                total=deduction.amount,
            )
            for deduction in deductions
        ]

        if not lines:
            lines.append(
                InvoiceLine(
                    invoice_id=invoice.id,
                    description="Prepaid balance top-up",
                    quantity=1,
                    unit_price=amount_needed,
                    total=amount_needed,
                )
            )
        return lines

    async def _notify(self, invoice: Invoice) -> bool:
        if self.notification_service is None:
            return False
        try:
            return await self.notification_service.send_top_up_invoice(invoice)
        except Exception as e:
            logger.error(f"Failed to deliver top-up invoice {invoice.invoice_number}: {e}")
            return False

    def _to_response_dto(self, invoice: Invoice, reused: bool = False) -> TopUpInvoiceResponseDTO:
        return TopUpInvoiceResponseDTO(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            client_id=invoice.client_id,
            amount=invoice.amount,
            status=invoice.status.value,
            reused=reused,
        )
