"""ProcessSessionCompletion Use Case

Billing pipeline entry point for a session-completed event.
"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.app.repositories.training_session_repository import TrainingSessionRepository
from .deduct_session import DeductSession
from .dtos import SessionBillingResponseDTO
from .errors import ErrorCode, client_not_found
from .generate_top_up_invoice import GenerateTopUpInvoice

logger = logging.getLogger(__name__)


class ProcessSessionCompletion:
    """
    Use Case: Bill a completed session

    Flow:
    1. Skip clients that are not on PREPAID billing
    2. Deduct the session (committed on its own)
    3. If the outcome asks for it, generate a top-up invoice, at most once
       per run; a failure here is reported but does not undo the deduction
    """

    def __init__(
        self,
        session_repo: TrainingSessionRepository,
        profile_repo: ClientBillingProfileRepository,
        deduct_session: DeductSession,
        generate_invoice: GenerateTopUpInvoice,
    ):
        self.session_repo = session_repo
        self.profile_repo = profile_repo
        self.deduct_session = deduct_session
        self.generate_invoice = generate_invoice

    async def execute(self, session_id: str) -> Result[SessionBillingResponseDTO]:
        session = await self.session_repo.get_by_id(session_id)
        if not session:
            return Return.err(
                Error(
                    code=ErrorCode.SESSION_NOT_FOUND,
                    message=f"Training session {session_id} not found",
                )
            )

        profile = await self.profile_repo.get_by_client_id(session.client_id)
        if not profile:
            return Return.err(client_not_found(session.client_id))

        if not profile.is_prepaid:
            logger.info(f"Client {profile.client_id} is not prepaid, session {session_id} not deducted")
            return Return.ok(SessionBillingResponseDTO(session_id=session_id, prepaid=False))

        client_id = profile.client_id
        trainer_id = session.trainer_id

        deduction_result = await self.deduct_session.execute(session_id)
        if deduction_result.is_err():
            return Return.err(deduction_result.error)

        outcome = deduction_result.value
        response = SessionBillingResponseDTO(session_id=session_id, prepaid=True, deduction=outcome)

        if outcome.should_generate_invoice and not outcome.already_processed:
            invoice_result = await self.generate_invoice.execute(client_id, trainer_id)
            if invoice_result.is_err():
                logger.error(
                    f"Top-up invoice for client {client_id} failed after session "
                    f"{session_id}: {invoice_result.error.code}"
                )
                response.invoice_error = invoice_result.error.code
            else:
                response.invoice = invoice_result.value

        return Return.ok(response)
