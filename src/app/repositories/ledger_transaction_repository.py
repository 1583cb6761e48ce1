"""Ledger Transaction Repository Interface

Append-only access to the prepaid transaction ledger.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from src.domain.ledger_transaction import LedgerTransaction, TransactionType


class LedgerTransactionRepository(ABC):
    """
    Repository interface for LedgerTransaction persistence

    Entries are immutable: there is no update or delete.
    """

    @abstractmethod
    async def record(self, entry: LedgerTransaction) -> LedgerTransaction:
        """
        Append an entry in the current unit of work

        Raises:
            IntegrityError: If the session already has a DEDUCTION or the
                invoice already has a payment CREDIT
        """
        pass

    @abstractmethod
    async def find_by_linked_session(
        self, client_profile_id: int, session_id: str
    ) -> Optional[LedgerTransaction]:
        """
        Find the DEDUCTION that charged a session (idempotency check)
        """
        pass

    @abstractmethod
    async def find_by_linked_invoice(self, invoice_id: int) -> Optional[LedgerTransaction]:
        """
        Find the CREDIT produced by paying a top-up invoice
        """
        pass

    @abstractmethod
    async def list(
        self, client_profile_id: int, limit: int = 50, offset: int = 0
    ) -> Tuple[List[LedgerTransaction], int]:
        """
        Page through a client's entries, newest first

        Returns:
            (entries, total count)
        """
        pass

    @abstractmethod
    async def count_since(
        self, client_profile_id: int, after_transaction_id: Optional[int]
    ) -> int:
        """
        Count DEDUCTION entries recorded after the given transaction
        (all DEDUCTION entries when after_transaction_id is None)
        """
        pass

    @abstractmethod
    async def list_since(
        self, client_profile_id: int, after_transaction_id: Optional[int],
        transaction_type: TransactionType,
    ) -> List[LedgerTransaction]:
        """
        Entries of one type recorded after the given transaction, oldest first
        """
        pass

    @abstractmethod
    async def get_latest(
        self, client_profile_id: int, transaction_type: Optional[TransactionType] = None
    ) -> Optional[LedgerTransaction]:
        """
        Most recent entry, optionally restricted to one type
        """
        pass

    @abstractmethod
    async def list_chronological(self, client_profile_id: int) -> List[LedgerTransaction]:
        """
        All entries of a client, oldest first (for reconciliation replay)
        """
        pass
