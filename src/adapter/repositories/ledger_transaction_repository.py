"""SQLAlchemy implementation of LedgerTransactionRepository

Append-only ledger. Exactly-once guarantees are backed by partial unique
indexes (one DEDUCTION per session, one payment CREDIT per invoice).
"""

from typing import List, Optional, Tuple
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.domain.ledger_transaction import LedgerTransaction, TransactionType


class SqlAlchemyLedgerTransactionRepository(LedgerTransactionRepository):
    """
    SQLAlchemy implementation of LedgerTransactionRepository

    Ordering uses the monotonic primary key, which follows insertion order
    even when two entries share a created_at timestamp.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(self, entry: LedgerTransaction) -> LedgerTransaction:
        """
        Raises:
            IntegrityError: If a unique idempotency index is violated
        """
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def find_by_linked_session(
        self, client_profile_id: int, session_id: str
    ) -> Optional[LedgerTransaction]:
        stmt = (
            select(LedgerTransaction)
            .where(LedgerTransaction.client_profile_id == client_profile_id)
            .where(LedgerTransaction.linked_session_id == session_id)
            .where(LedgerTransaction.transaction_type == TransactionType.DEDUCTION)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_by_linked_invoice(self, invoice_id: int) -> Optional[LedgerTransaction]:
        stmt = (
            select(LedgerTransaction)
            .where(LedgerTransaction.linked_invoice_id == invoice_id)
            .where(LedgerTransaction.transaction_type == TransactionType.CREDIT)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list(
        self, client_profile_id: int, limit: int = 50, offset: int = 0
    ) -> Tuple[List[LedgerTransaction], int]:
        stmt = (
            select(LedgerTransaction)
            .where(LedgerTransaction.client_profile_id == client_profile_id)
            .order_by(LedgerTransaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        entries = [entry for entry in result.scalars().all()]

        count_stmt = (
            select(func.count())
            .select_from(LedgerTransaction)
            .where(LedgerTransaction.client_profile_id == client_profile_id)
        )
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar_one()

        return entries, total

    async def count_since(
        self, client_profile_id: int, after_transaction_id: Optional[int]
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(LedgerTransaction)
            .where(LedgerTransaction.client_profile_id == client_profile_id)
            .where(LedgerTransaction.transaction_type == TransactionType.DEDUCTION)
        )
        if after_transaction_id is not None:
            stmt = stmt.where(LedgerTransaction.id > after_transaction_id)

        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_since(
        self, client_profile_id: int, after_transaction_id: Optional[int],
        transaction_type: TransactionType,
    ) -> List[LedgerTransaction]:
        stmt = (
            select(LedgerTransaction)
            .where(LedgerTransaction.client_profile_id == client_profile_id)
            .where(LedgerTransaction.transaction_type == transaction_type)
        )
        if after_transaction_id is not None:
            stmt = stmt.where(LedgerTransaction.id > after_transaction_id)

        result = await self.session.execute(stmt.order_by(LedgerTransaction.id.asc()))
        return [entry for entry in result.scalars().all()]

    async def get_latest(
        self, client_profile_id: int, transaction_type: Optional[TransactionType] = None
    ) -> Optional[LedgerTransaction]:
        stmt = select(LedgerTransaction).where(
            LedgerTransaction.client_profile_id == client_profile_id
        )
        if transaction_type is not None:
            stmt = stmt.where(LedgerTransaction.transaction_type == transaction_type)

        result = await self.session.execute(stmt.order_by(LedgerTransaction.id.desc()).limit(1))
        return result.scalars().first()

    async def list_chronological(self, client_profile_id: int) -> List[LedgerTransaction]:
        stmt = (
            select(LedgerTransaction)
            .where(LedgerTransaction.client_profile_id == client_profile_id)
            .order_by(LedgerTransaction.id.asc())
        )
        result = await self.session.execute(stmt)
        return [entry for entry in result.scalars().all()]
