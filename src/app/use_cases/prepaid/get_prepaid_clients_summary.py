"""GetPrepaidClientsSummary Use Case

Trainer dashboard view of every prepaid client's balance.
"""

from decimal import Decimal
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.domain.base import to_money
from src.domain.ledger_transaction import TransactionType
from .dtos import (
    PrepaidClientSummaryDTO,
    PrepaidClientsSummaryResponseDTO,
    PrepaidSummaryTotalsDTO,
)


def balance_status(current: Decimal, target: Optional[Decimal], low_ratio: Decimal) -> str:
    """'empty' at zero, 'low' below low_ratio of a positive target, else 'healthy'"""
    if current <= 0:
        return "empty"
    if target is not None and target > 0 and current < target * low_ratio:
        return "low"
    return "healthy"


class GetPrepaidClientsSummary:
    """
    Use Case: Summarise prepaid clients of a trainer in a workspace

    Clients are ordered by name. sessions_consumed_since_last_credit counts
    DEDUCTION entries after the most recent CREDIT.
    """

    def __init__(
        self,
        profile_repo: ClientBillingProfileRepository,
        transaction_repo: LedgerTransactionRepository,
        low_balance_ratio: float = 0.25,
    ):
        self.profile_repo = profile_repo
        self.transaction_repo = transaction_repo
        self.low_balance_ratio = Decimal(str(low_balance_ratio))

    async def execute(
        self, trainer_id: str, workspace_id: str
    ) -> Result[PrepaidClientsSummaryResponseDTO]:
        profiles = await self.profile_repo.list_prepaid(trainer_id, workspace_id)

        clients = []
        for profile in profiles:
            last_credit = await self.transaction_repo.get_latest(profile.id, TransactionType.CREDIT)
            consumed = await self.transaction_repo.count_since(
                profile.id, last_credit.id if last_credit else None
            )
            last_entry = await self.transaction_repo.get_latest(profile.id)

            clients.append(
                PrepaidClientSummaryDTO(
                    client_id=profile.client_id,
                    client_profile_id=profile.id,
                    client_name=profile.client_name,
                    client_email=profile.client_email,
                    current_balance=to_money(profile.current_balance),
                    target_balance=to_money(profile.target_balance or 0),
                    sessions_consumed_since_last_credit=consumed,
                    last_transaction_at=last_entry.created_at if last_entry else None,
                    balance_status=balance_status(
                        profile.current_balance, profile.target_balance, self.low_balance_ratio
                    ),
                )
            )

        totals = PrepaidSummaryTotalsDTO(
            total_balance=to_money(sum((c.current_balance for c in clients), Decimal("0"))),
            total_target=to_money(sum((c.target_balance for c in clients), Decimal("0"))),
            client_count=len(clients),
            clients_needing_attention=sum(1 for c in clients if c.balance_status != "healthy"),
        )

        return Return.ok(PrepaidClientsSummaryResponseDTO(clients=clients, totals=totals))
