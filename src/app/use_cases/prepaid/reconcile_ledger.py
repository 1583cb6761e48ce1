"""ReconcileLedger Use Case

Replays every client's prepaid ledger to verify that the stored balances
are explained by the recorded entries.
"""

import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from libs.result import Result, Return, Error
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.domain.base import to_money
from src.domain.client_billing_profile import ClientBillingProfile
from src.domain.ledger_transaction import LedgerTransaction, TransactionType
from .dtos import LedgerDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)


def signed_amount(entry: LedgerTransaction) -> Decimal:
    if entry.transaction_type == TransactionType.DEDUCTION:
        return -entry.amount
    return entry.amount


class ReconcileLedger:
    """
    Use Case: Reconcile prepaid balances against the ledger

    Business Rules:
    1. Entries are replayed in id order
    2. Each balance_after must equal the previous balance_after plus the
       entry's signed amount (DEDUCTION negative, CREDIT positive)
    3. The last balance_after must equal the profile's current_balance
    4. A profile without entries is taken at its stored (opening) balance
    5. Does NOT modify any data (read-only reconciliation)
    """

    def __init__(
        self,
        profile_repo: ClientBillingProfileRepository,
        transaction_repo: LedgerTransactionRepository,
    ):
        self.profile_repo = profile_repo
        self.transaction_repo = transaction_repo

    async def execute(self) -> Result[ReconciliationResultDTO]:
        """
        Execute ledger reconciliation

        Returns:
            Result[ReconciliationResultDTO]: Reconciliation result with any discrepancies
        """
        start_time = time.time()
        reconciliation_time = datetime.utcnow()

        try:
            logger.info("Starting prepaid ledger reconciliation")

            profiles = await self.profile_repo.get_all()
            discrepancies: List[LedgerDiscrepancyDTO] = []

            for profile in profiles:
                entries = await self.transaction_repo.list_chronological(profile.id)
                discrepancy = self._check_profile(profile, entries)
                if discrepancy:
                    discrepancies.append(discrepancy)
                    logger.warning(
                        f"Discrepancy found for client {profile.client_id} "
                        f"(profile_id={profile.id}): stored={discrepancy.stored_balance}, "
                        f"replayed={discrepancy.replayed_balance}, "
                        f"broken_entries={discrepancy.broken_entry_ids}"
                    )

            execution_time_ms = int((time.time() - start_time) * 1000)

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {len(profiles)} profiles in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {len(profiles)} profiles balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(
                ReconciliationResultDTO(
                    total_profiles_checked=len(profiles),
                    discrepancies_found=len(discrepancies),
                    discrepancies=discrepancies,
                    reconciliation_time=reconciliation_time,
                    execution_time_ms=execution_time_ms,
                )
            )

        except Exception as e:
            logger.error(f"Ledger reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile prepaid ledger",
                    reason=str(e),
                )
            )

    def _check_profile(
        self, profile: ClientBillingProfile, entries: List[LedgerTransaction]
    ) -> Optional[LedgerDiscrepancyDTO]:
        if not entries:
            return None

        broken: List[int] = []
        previous: Optional[Decimal] = None
        for entry in entries:
            if entry.balance_after < 0:
                broken.append(entry.id)
            elif previous is not None and to_money(previous + signed_amount(entry)) != to_money(entry.balance_after):
                broken.append(entry.id)
            previous = entry.balance_after

        replayed = to_money(entries[-1].balance_after)
        stored = to_money(profile.current_balance)
        if not broken and replayed == stored:
            return None

        return LedgerDiscrepancyDTO(
            client_profile_id=profile.id,
            client_id=profile.client_id,
            stored_balance=stored,
            replayed_balance=replayed,
            broken_entry_ids=broken,
        )
