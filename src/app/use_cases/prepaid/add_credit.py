"""AddCredit Use Case

Adds funds to a client's prepaid balance outside the invoice flow
(cash payment, goodwill credit, initial deposit).
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.domain.base import to_money
from src.domain.client_billing_profile import BillingMode
from src.domain.errors import RetriesExhaustedError
from src.domain.ledger_transaction import LedgerTransaction, TransactionType
from .dtos import AddCreditCommandDTO, AddCreditResponseDTO
from .errors import ErrorCode, client_not_found, transient_failure
from .retry import RetryPolicy, run_in_transaction

logger = logging.getLogger(__name__)

DEFAULT_CREDIT_DESCRIPTION = "Prepaid credit added"


class AddCredit:
    """
    Use Case: Add prepaid credit

    Business Rules:
    1. Amount must be positive and in whole cents
    2. A client not yet on PREPAID is switched to PREPAID, which needs a
       positive target balance
    3. Balance compare-and-swap and CREDIT entry commit together
    """

    def __init__(
        self,
        uow: UnitOfWork,
        profile_repo: ClientBillingProfileRepository,
        transaction_repo: LedgerTransactionRepository,
        policy: RetryPolicy = RetryPolicy(),
    ):
        self.uow = uow
        self.profile_repo = profile_repo
        self.transaction_repo = transaction_repo
        self.policy = policy

    async def execute(self, command: AddCreditCommandDTO) -> Result[AddCreditResponseDTO]:
        if command.amount is None or command.amount <= 0:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_AMOUNT,
                    message="Credit amount must be greater than zero",
                    reason=f"amount={command.amount}",
                )
            )
        if to_money(command.amount) != command.amount:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_AMOUNT,
                    message="Credit amount must not have more than 2 decimal places",
                    reason=f"amount={command.amount}",
                )
            )

        try:
            return await run_in_transaction(
                self.uow, "add_credit", lambda: self._add(command), self.policy
            )
        except RetriesExhaustedError as e:
            return Return.err(transient_failure(e))
        except Exception as e:
            logger.exception(f"Adding credit failed for client {command.client_id}")
            return Return.err(
                Error(
                    code="ADD_CREDIT_FAILED",
                    message="Failed to add credit",
                    reason=str(e),
                )
            )

    async def _add(self, command: AddCreditCommandDTO) -> Result[AddCreditResponseDTO]:
        profile = await self.profile_repo.get_by_client_id(command.client_id)
        if not profile or (command.workspace_id and profile.workspace_id != command.workspace_id):
            return Return.err(client_not_found(command.client_id))

        switched = False
        if not profile.is_prepaid:
            if profile.target_balance is None or profile.target_balance <= 0:
                return Return.err(
                    Error(
                        code=ErrorCode.TARGET_BALANCE_NOT_CONFIGURED,
                        message=(
                            f"Client {command.client_id} needs a target balance "
                            f"before switching to prepaid billing"
                        ),
                    )
                )
            await self.profile_repo.update_billing_settings(
                profile, BillingMode.PREPAID, profile.target_balance
            )
            switched = True

        amount = to_money(command.amount)
        new_balance = await self.profile_repo.apply_delta(profile, amount)
        entry = await self.transaction_repo.record(
            LedgerTransaction(
                client_profile_id=profile.id,
                transaction_type=TransactionType.CREDIT,
                amount=amount,
                balance_after=new_balance,
                description=command.notes or DEFAULT_CREDIT_DESCRIPTION,
            )
        )

        logger.info(f"Added {amount} credit to client {profile.client_id}, balance now {new_balance}")

        return Return.ok(
            AddCreditResponseDTO(
                client_id=profile.client_id,
                client_profile_id=profile.id,
                amount=amount,
                new_balance=new_balance,
                transaction_id=entry.id,
                switched_to_prepaid=switched,
            )
        )
