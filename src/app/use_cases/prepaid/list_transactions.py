"""
List Transactions Use Case

Retrieves prepaid ledger history for a client profile with pagination.
"""
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from .dtos import ListTransactionsResponseDTO, TransactionDTO
from .errors import client_not_found


class ListTransactions:
    """
    Use case: View prepaid transactions

    Transactions are ordered newest first.
    """

    def __init__(
        self,
        profile_repo: ClientBillingProfileRepository,
        transaction_repo: LedgerTransactionRepository,
    ):
        self.profile_repo = profile_repo
        self.transaction_repo = transaction_repo

    async def execute(
        self,
        client_profile_id: int,
        limit: int = 50,
        offset: int = 0,
        workspace_id: Optional[str] = None,
    ) -> Result[ListTransactionsResponseDTO]:
        """
        List transactions for a client profile with pagination.

        Args:
            client_profile_id: Profile whose ledger to read
            limit: Maximum number of transactions to return (default 50)
            offset: Number of transactions to skip (default 0)
            workspace_id: Caller's workspace; a mismatch is reported as not found

        Returns:
            Result[ListTransactionsResponseDTO]: Paginated transaction list
        """
        profile = await self.profile_repo.get_by_id(client_profile_id)
        if not profile or (workspace_id and profile.workspace_id != workspace_id):
            return Return.err(client_not_found(f"profile {client_profile_id}"))

        transactions, total = await self.transaction_repo.list(
            client_profile_id, limit=limit, offset=offset
        )

        transaction_dtos = [
            TransactionDTO(
                id=txn.id,
                transaction_type=txn.transaction_type.value,
                amount=txn.amount,
                balance_after=txn.balance_after,
                description=txn.description,
                linked_session_id=txn.linked_session_id,
                linked_invoice_id=txn.linked_invoice_id,
                created_at=txn.created_at,
            )
            for txn in transactions
        ]

        return Return.ok(
            ListTransactionsResponseDTO(
                client_profile_id=client_profile_id,
                transactions=transaction_dtos,
                total=total,
                limit=limit,
                offset=offset,
                has_more=offset + len(transaction_dtos) < total,
            )
        )
