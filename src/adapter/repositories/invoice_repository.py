"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import or_, update
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.errors import ConcurrencyConflictError
from src.domain.invoice import Invoice, InvoiceCategory, InvoiceStatus, TOP_UP_MARKER


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Uses async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Returns:
            Created Invoice with generated ID
        """
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        statement = select(Invoice).where(Invoice.id == invoice_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def find_open_top_up(self, client_id: str) -> Optional[Invoice]:
        # Rows written before the category column only carry the notes marker
        statement = (
            select(Invoice)
            .where(Invoice.client_id == client_id)
            .where(
                or_(
                    Invoice.category == InvoiceCategory.PREPAID_TOPUP,
                    Invoice.notes.contains(TOP_UP_MARKER),
                )
            )
            .where(Invoice.status == InvoiceStatus.SENT)
            .order_by(Invoice.id.desc())
        )
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def transition_status(
        self,
        invoice: Invoice,
        from_status: InvoiceStatus,
        to_status: InvoiceStatus,
        paid_at: Optional[datetime] = None,
    ) -> Invoice:
        """
        Conditional UPDATE ... WHERE status = from_status

        Raises:
            ConcurrencyConflictError: If another transaction moved the invoice first
        """
        values = {"status": to_status, "updated_at": datetime.utcnow()}
        if paid_at is not None:
            values["paid_at"] = paid_at

        statement = (
            update(Invoice)
            .where(Invoice.id == invoice.id)
            .where(Invoice.status == from_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        if result.rowcount != 1:
            raise ConcurrencyConflictError("Invoice", invoice.id, from_status.value)

        for key, value in values.items():
            set_committed_value(invoice, key, value)
        return invoice

    async def generate_invoice_number(self) -> str:
        """
        Generate a unique invoice number

        Format: INV-YYYY-NNNNNN (e.g., INV-2025-000001)
        """
        year = datetime.utcnow().year
        prefix = f"INV-{year}-"

        # Get the highest invoice number for this year
        statement = (
            select(func.max(Invoice.invoice_number))
            .where(Invoice.invoice_number.like(f"{prefix}%"))
        )
        result = await self.session.execute(statement)
        max_number = result.scalar_one_or_none()

        if max_number:
            # Extract the sequence number and increment
            sequence = int(max_number.split("-")[-1]) + 1
        else:
            sequence = 1

        return f"{prefix}{sequence:06d}"
