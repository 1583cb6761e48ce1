"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from src.domain.invoice import Invoice, InvoiceStatus


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Status changes are compare-and-swap so that two concurrent payment or
    void requests cannot both act on the same SENT invoice.
    """

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Returns:
            Created Invoice with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        pass

    @abstractmethod
    async def find_open_top_up(self, client_id: str) -> Optional[Invoice]:
        """
        Find the client's unresolved (SENT) top-up invoice, if any
        """
        pass

    @abstractmethod
    async def transition_status(
        self,
        invoice: Invoice,
        from_status: InvoiceStatus,
        to_status: InvoiceStatus,
        paid_at: Optional[datetime] = None,
    ) -> Invoice:
        """
        Move an invoice from one status to another

        Raises:
            ConcurrencyConflictError: If the stored status is no longer from_status
        """
        pass

    @abstractmethod
    async def generate_invoice_number(self) -> str:
        """
        Generate a unique invoice number

        Format: INV-YYYY-NNNNNN (e.g., INV-2025-000001)
        """
        pass
