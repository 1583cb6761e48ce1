"""DeductSession Use Case

Charges one completed training session against a client's prepaid balance,
exactly once, without ever driving the balance negative.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.app.repositories.training_session_repository import TrainingSessionRepository
from src.domain.base import to_money
from src.domain.errors import RateConfigurationError, RetriesExhaustedError
from src.domain.ledger_transaction import LedgerTransaction, TransactionType
from src.domain.training_session import SessionStatus
from .dtos import SessionDeductionOutcomeDTO
from .errors import ErrorCode, client_not_found, transient_failure
from .rate_resolver import SessionRateResolver, session_description
from .retry import RetryPolicy, run_in_transaction

logger = logging.getLogger(__name__)


class DeductSession:
    """
    Use Case: Deduct a session from the prepaid balance

    Business Rules:
    1. Idempotency: a session that already has a DEDUCTION returns the
       recorded amount and balance, changing nothing
    2. Partial deduction: the charge is min(balance, rate); a short balance
       is drained to zero and reported as unsuccessful
    3. Atomic updates: balance compare-and-swap and ledger entry commit together
    4. Optimistic concurrency: lost races are retried with backoff

    Flow:
    1. Load session and client profile
    2. Check idempotency (return recorded outcome if found)
    3. Resolve the session rate
    4. Apply -amount to the balance and append a DEDUCTION entry
    5. Commit (or retry the whole unit on conflict)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        session_repo: TrainingSessionRepository,
        profile_repo: ClientBillingProfileRepository,
        transaction_repo: LedgerTransactionRepository,
        rate_resolver: SessionRateResolver,
        policy: RetryPolicy = RetryPolicy(),
    ):
        self.uow = uow
        self.session_repo = session_repo
        self.profile_repo = profile_repo
        self.transaction_repo = transaction_repo
        self.rate_resolver = rate_resolver
        self.policy = policy

    async def execute(self, session_id: str) -> Result[SessionDeductionOutcomeDTO]:
        """
        Execute session deduction

        Args:
            session_id: Completed training session to charge

        Returns:
            Result[SessionDeductionOutcomeDTO]: Deduction outcome or error
        """
        try:
            return await run_in_transaction(
                self.uow, "deduct_session", lambda: self._deduct(session_id), self.policy
            )
        except RetriesExhaustedError as e:
            return Return.err(transient_failure(e))
        except RateConfigurationError as e:
            return Return.err(
                Error(
                    code=ErrorCode.RATE_NOT_CONFIGURED,
                    message=str(e),
                    reason=f"session_id={session_id}",
                )
            )
        except Exception as e:
            logger.exception(f"Deduction failed for session {session_id}")
            return Return.err(
                Error(
                    code="DEDUCT_SESSION_FAILED",
                    message="Failed to deduct session",
                    reason=str(e),
                )
            )

    async def _deduct(self, session_id: str) -> Result[SessionDeductionOutcomeDTO]:
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

        existing = await self.transaction_repo.find_by_linked_session(profile.id, session.id)
        if existing:
            logger.info(f"Session {session.id} already deducted (transaction {existing.id})")
            return Return.ok(
                SessionDeductionOutcomeDTO(
                    session_id=session.id,
                    client_profile_id=profile.id,
                    success=True,
                    amount_deducted=existing.amount,
                    new_balance=existing.balance_after,
                    should_generate_invoice=False,
                    transaction_id=existing.id,
                    already_processed=True,
                )
            )

        if session.status == SessionStatus.CANCELLED:
            return Return.err(
                Error(
                    code=ErrorCode.SESSION_NOT_BILLABLE,
                    message=f"Training session {session.id} was cancelled",
                    reason=f"status={session.status.value}",
                )
            )

        resolved = await self.rate_resolver.resolve(session, profile)
        rate = resolved.rate
        amount = to_money(min(profile.current_balance, rate))

        new_balance = to_money(profile.current_balance)
        transaction_id = None
        if amount > 0:
            new_balance = await self.profile_repo.apply_delta(profile, -amount)
            entry = await self.transaction_repo.record(
                LedgerTransaction(
                    client_profile_id=profile.id,
                    transaction_type=TransactionType.DEDUCTION,
                    amount=amount,
                    balance_after=new_balance,
                    description=session_description(session, resolved.is_group_session),
                    linked_session_id=session.id,
                )
            )
            transaction_id = entry.id

        success = amount == rate
        if not success:
            logger.warning(
                f"Insufficient prepaid balance for client {profile.client_id}: "
                f"rate {rate}, deducted {amount}"
            )
        else:
            logger.info(
                f"Deducted {amount} for session {session.id} from client {profile.client_id}, "
                f"balance now {new_balance}"
            )

        return Return.ok(
            SessionDeductionOutcomeDTO(
                session_id=session.id,
                client_profile_id=profile.id,
                success=success,
                amount_deducted=amount,
                new_balance=new_balance,
                rate=rate,
                is_group_session=resolved.is_group_session,
                should_generate_invoice=not success or new_balance < rate,
                transaction_id=transaction_id,
            )
        )
