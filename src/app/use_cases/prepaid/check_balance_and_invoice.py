"""CheckBalanceAndInvoice Use Case

Run when a session is scheduled: a prepaid client who cannot cover the next
session is sent a top-up invoice ahead of time.
"""

import logging
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from .dtos import BalanceCheckResponseDTO
from .errors import client_not_found
from .generate_top_up_invoice import GenerateTopUpInvoice

logger = logging.getLogger(__name__)


class CheckBalanceAndInvoice:
    """
    Use Case: Check prepaid balance before a session

    An invoice is generated when the client is PREPAID and the balance is
    zero or below the individual session rate.
    """

    def __init__(
        self,
        profile_repo: ClientBillingProfileRepository,
        generate_invoice: GenerateTopUpInvoice,
    ):
        self.profile_repo = profile_repo
        self.generate_invoice = generate_invoice

    async def execute(
        self, client_id: str, trainer_id: Optional[str] = None
    ) -> Result[BalanceCheckResponseDTO]:
        profile = await self.profile_repo.get_by_client_id(client_id)
        if not profile:
            return Return.err(client_not_found(client_id))

        if not profile.is_prepaid:
            return Return.ok(BalanceCheckResponseDTO(client_id=client_id, invoice_generated=False))

        if profile.current_balance > 0 and profile.current_balance >= profile.individual_rate:
            return Return.ok(BalanceCheckResponseDTO(client_id=client_id, invoice_generated=False))

        logger.info(
            f"Client {client_id} balance {profile.current_balance} cannot cover a "
            f"{profile.individual_rate} session, generating top-up invoice"
        )
        result = await self.generate_invoice.execute(client_id, trainer_id)
        if result.is_err():
            return Return.err(result.error)

        invoice = result.value
        return Return.ok(
            BalanceCheckResponseDTO(
                client_id=client_id,
                invoice_generated=invoice is not None,
                invoice=invoice,
            )
        )
